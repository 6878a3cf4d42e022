# app/core/metrics.py
from prometheus_client import Counter, Histogram

# Métricas de Prometheus para el API
api_requests_total = Counter(
    'school_testing_api_requests_total',
    'Total school testing API requests',
    ['method', 'endpoint', 'status']
)

api_request_duration_seconds = Histogram(
    'school_testing_api_request_duration_seconds',
    'School testing API request duration in seconds',
    ['method', 'endpoint']
)

# Métricas del motor de intentos
attempts_started_total = Counter(
    'attempts_started_total',
    'Attempts started, by outcome (created/resumed)',
    ['outcome']
)

attempts_submitted_total = Counter(
    'attempts_submitted_total',
    'Attempts graded and completed',
    ['passed']
)

attempt_progress_saves_total = Counter(
    'attempt_progress_saves_total',
    'Progress saves on open attempts'
)

attempt_errors_total = Counter(
    'attempt_errors_total',
    'Rejected attempt operations',
    ['operation', 'error']
)
