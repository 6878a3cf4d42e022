# app/main.py
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from app.api.v1.endpoints import auth, health, student
from app.core.config import settings
from app.core.exceptions import AssessmentError
from app.core.logging_config import setup_logging
from middleware.request_logging import RequestLoggingMiddleware
import logging

# Configurar logging al inicio de la aplicacion
setup_logging()
logger = logging.getLogger('app')

HTTP_ERROR_CODES = {
    401: 'unauthorized',
    403: 'forbidden',
    404: 'not_found',
    405: 'method_not_allowed',
}

app = FastAPI(
    title='School Testing API',
    description='''
    ## Motor de evaluaciones para alumnos

    **Servicios Disponibles:**
    - **Attempts**: Inicio, reanudación, guardado y envío de intentos
    - **Assignments**: Asignaciones del alumno y su historial de resultados
    - **Authentication**: Login con email/password (JWT)
    - **Health Check**: Estado del servicio y la base de datos
    ''',
    version='1.0.0',
    openapi_url='/openapi.json',
    docs_url='/docs',
    redoc_url='/redoc'
)

logger.info('School Testing API starting up')

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = '.'.join(str(part) for part in first.get('loc', ()) if part != 'body')
    message = f"{field}: {first.get('msg')}" if field else (first.get('msg') or 'Invalid request')
    return JSONResponse(
        status_code=400,
        content={'error': 'validation_error', 'message': message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, 'server_error' if exc.status_code >= 500 else 'validation_error')
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': code, 'message': str(exc.detail)},
        headers=getattr(exc, 'headers', None),
    )


# Incluir rutas
app.include_router(health.router, prefix='/api/v1', tags=['Health Check'])
app.include_router(auth.router, prefix='/api/v1', tags=['Authentication'])
app.include_router(student.router, prefix='/api/v1/student', tags=['Student Attempts'])

@app.get('/')
async def root():
    return {
        'message': 'School Testing API',
        'status': 'operativo',
        'version': '1.0.0',
        'docs': '/docs',
        'available_services': ['health', 'auth', 'student'],
    }

@app.get('/metrics', include_in_schema=False)
async def prometheus_metrics():
    """Endpoint de metricas para Prometheus"""
    return Response(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8000)
