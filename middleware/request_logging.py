# MIDDLEWARE DE LOGGING DE PETICIONES
# Registra cada peticion con request id, tiempo de respuesta y metricas Prometheus

import time
import uuid
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core import metrics
from app.core.logging_config import get_api_logger, log_api_request


def generate_request_id() -> str:
    return f'req_{uuid.uuid4().hex[:12]}'


def route_template(request: Request) -> str:
    # Usar la plantilla de la ruta (/attempts/{attempt_id}) para no disparar la cardinalidad
    route = request.scope.get('route')
    return getattr(route, 'path', request.url.path)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logger=None):
        super().__init__(app)
        self.logger = logger or get_api_logger()

    async def dispatch(self, request: Request, call_next):
        request_id = generate_request_id()
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            self.logger.exception(
                f'Unhandled error: {request.method} {request.url.path}',
                extra={'request_id': request_id, 'endpoint': request.url.path,
                       'method': request.method, 'status_code': 500,
                       'response_time_ms': elapsed_ms, 'error_code': 'server_error'}
            )
            metrics.api_requests_total.labels(request.method, route_template(request), '500').inc()
            response = JSONResponse(
                status_code=500,
                content={'error': 'server_error', 'message': 'Internal server error',
                         'request_id': request_id},
            )
            response.headers['X-Request-ID'] = request_id
            return response

        elapsed = time.perf_counter() - start
        endpoint = route_template(request)
        metrics.api_requests_total.labels(request.method, endpoint, str(response.status_code)).inc()
        metrics.api_request_duration_seconds.labels(request.method, endpoint).observe(elapsed)
        log_api_request(
            self.logger, request.method, request.url.path,
            status_code=response.status_code,
            response_time_ms=int(elapsed * 1000),
            request_id=request_id,
        )

        response.headers['X-Request-ID'] = request_id
        return response
