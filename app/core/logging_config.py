import logging
import logging.config
import json
from datetime import datetime
from typing import Dict, Any
from pathlib import Path

from app.core.config import settings


# Campos de contexto que se copian del record al JSON cuando existen
CONTEXT_FIELDS = (
    'service', 'endpoint', 'method', 'status_code', 'response_time_ms',
    'user_id', 'request_id', 'attempt_id', 'assignment_id', 'event', 'error_code',
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter que genera logs en formato JSON estructurado
    para facilitar la integración con sistemas de monitoreo
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Formatea el registro de log como JSON estructurado
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread": record.thread,
        }

        # Agregar información adicional si está disponible
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        # Agregar información de excepción si existe
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging() -> None:
    """
    Configura el sistema de logging con rotación y formato estructurado
    para integración con sistemas de monitoreo
    """
    # Crear directorio de logs si no existe
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    level = settings.LOG_LEVEL.upper()

    def rotating(filename: str, level: str, backups: int = 10) -> Dict[str, Any]:
        return {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "structured",
            "filename": str(log_dir / filename),
            "maxBytes": 10485760,  # 10MB
            "backupCount": backups,
            "level": level,
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": level,
                "stream": "ext://sys.stdout"
            },
            "file_all": rotating("app.log", level),
            "file_errors": rotating("errors.log", "ERROR"),
            "file_attempts": rotating("attempts.log", level),
            "file_api": rotating("api.log", level),
        },
        "loggers": {
            "app": {
                "level": level,
                "handlers": ["console", "file_all", "file_errors"],
                "propagate": False
            },
            "app.services": {
                "level": level,
                "handlers": ["console", "file_attempts", "file_errors"],
                "propagate": False
            },
            "app.api": {
                "level": level,
                "handlers": ["console", "file_api", "file_errors"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console", "file_api"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["file_api"],
                "propagate": False
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console", "file_all"]
        }
    }

    # Aplicar configuración
    logging.config.dictConfig(logging_config)

    # Logger principal de la aplicación
    logger = logging.getLogger("app")
    logger.info("Logging system initialized successfully")
    logger.info(f"Log files will be stored in: {log_dir.absolute()}")


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter personalizado para agregar contexto adicional a los logs
    """

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        # El contexto del adapter no pisa el extra explícito de la llamada
        if self.extra:
            merged = dict(self.extra)
            merged.update(kwargs.get('extra', {}))
            kwargs['extra'] = merged

        return msg, kwargs


def get_attempt_logger() -> LoggerAdapter:
    """
    Obtiene un logger específico para el ciclo de vida de los intentos
    """
    base_logger = logging.getLogger("app.services.attempts")
    return LoggerAdapter(base_logger, {"service": "attempts"})


def get_api_logger() -> LoggerAdapter:
    """
    Obtiene un logger específico para operaciones de API
    """
    base_logger = logging.getLogger("app.api.requests")
    return LoggerAdapter(base_logger, {"service": "api"})


def log_api_request(logger: logging.Logger, method: str, endpoint: str,
                   status_code: int = None, response_time_ms: int = None,
                   user_id: str = None, **kwargs):
    """
    Registra información de una petición API con contexto estructurado

    Args:
        logger: Logger a usar
        method: Método HTTP
        endpoint: Endpoint accedido
        status_code: Código de respuesta HTTP
        response_time_ms: Tiempo de respuesta en millisegundos
        user_id: ID del usuario (si está autenticado)
        **kwargs: Información adicional
    """
    extra = {
        "method": method,
        "endpoint": endpoint,
    }

    if status_code:
        extra["status_code"] = status_code
    if response_time_ms is not None:
        extra["response_time_ms"] = response_time_ms
    if user_id:
        extra["user_id"] = user_id

    extra.update(kwargs)

    if status_code and status_code >= 500:
        logger.error(f"API request failed: {method} {endpoint}", extra=extra)
    elif status_code and status_code >= 400:
        logger.warning(f"API request rejected: {method} {endpoint}", extra=extra)
    else:
        logger.info(f"API request: {method} {endpoint}", extra=extra)


def log_attempt_event(logger: logging.Logger, event: str, attempt_id: int = None,
                      student_id: int = None, assignment_id: int = None,
                      success: bool = True, **kwargs):
    """
    Registra un evento del ciclo de vida de un intento (start, resume, save, submit)

    Args:
        logger: Logger a usar
        event: Nombre del evento
        attempt_id: ID del intento
        student_id: ID del alumno
        assignment_id: ID de la asignación
        success: Si la operación fue exitosa
        **kwargs: Información adicional (score, error_code, ...)
    """
    extra = {"event": event}

    if attempt_id is not None:
        extra["attempt_id"] = attempt_id
    if student_id is not None:
        extra["user_id"] = student_id
    if assignment_id is not None:
        extra["assignment_id"] = assignment_id

    extra.update(kwargs)

    if success:
        logger.info(f"Attempt event: {event}", extra=extra)
    else:
        logger.warning(f"Attempt event rejected: {event}", extra=extra)
