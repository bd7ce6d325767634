"""
Centralized logging configuration for Navexa
Provides structured JSON logging and request/response tracking
"""

import os
import sys
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any
from flask import has_request_context, request, g
import traceback

# LogRecord attributes that are not "extra" fields
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
    'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'message', 'taskName',
}


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging
    Includes correlation ID, request context, and application metadata
    """

    def __init__(self):
        super().__init__()
        self.application_name = "navexa"
        self.environment = os.environ.get('FLASK_ENV', 'development')

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""

        # Base log data
        log_data: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'application': self.application_name,
            'environment': self.environment
        }

        # Add correlation ID if available
        if has_request_context() and hasattr(g, 'correlation_id'):
            log_data['correlation_id'] = g.correlation_id

        # Add request context if available
        if has_request_context():
            log_data['request'] = {
                'method': request.method,
                'path': request.path,
                'remote_addr': request.remote_addr,
                'user_agent': request.headers.get('User-Agent', ''),
                'content_type': request.headers.get('Content-Type', '')
            }

        # Add exception information if present
        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': traceback.format_exception(*record.exc_info)
            }

        # Add extra fields from record
        extra_fields = {key: value for key, value in record.__dict__.items()
                        if key not in _RESERVED_ATTRS}
        if extra_fields:
            log_data['extra'] = extra_fields

        # Add code location for debug/error levels
        if record.levelno in (logging.DEBUG, logging.ERROR):
            log_data['location'] = {
                'file': record.pathname,
                'function': record.funcName,
                'line': record.lineno
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


class RequestContextFilter(logging.Filter):
    """
    Filter to inject request context into log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add request context to log record"""
        if has_request_context():
            if hasattr(g, 'correlation_id'):
                record.correlation_id = g.correlation_id

            if hasattr(g, 'request_start_time'):
                record.request_duration = datetime.now().timestamp() - g.request_start_time

        return True


def use_json_logging() -> bool:
    return (
        os.environ.get('USE_JSON_LOGGING', 'false').lower() == 'true' or
        os.environ.get('FLASK_ENV') == 'production'
    )


def setup_logging(app=None) -> logging.Logger:
    """
    Configure centralized logging for the application
    Returns the root logger
    """

    # Determine log level from environment
    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    if log_level not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
        log_level = 'INFO'

    json_logging = use_json_logging()

    # Configure JSON formatting for production, simple for development
    if json_logging:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s in %(name)s: %(message)s'
        )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # File handlers (optional)
    if os.environ.get('ENABLE_FILE_LOGGING', 'false').lower() == 'true':
        log_dir = os.environ.get('LOG_DIR', 'logs')
        os.makedirs(log_dir, exist_ok=True)

        error_handler = logging.FileHandler(os.path.join(log_dir, 'error.log'))
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(RequestContextFilter())
        root_logger.addHandler(error_handler)

        file_handler = logging.FileHandler(os.path.join(log_dir, 'application.log'))
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(RequestContextFilter())
        root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers in production
    if os.environ.get('FLASK_ENV') == 'production':
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    if app:
        app.logger.info(f"Logging configured: level={log_level}, json_format={json_logging}")
        app.logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")

    return root_logger


def log_request_start():
    """Mark the start of request processing for timing"""
    if has_request_context():
        g.request_start_time = datetime.now().timestamp()
        g.correlation_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex


def log_request_end(response):
    """Log request completion with timing and response info"""
    if has_request_context() and hasattr(g, 'request_start_time'):
        duration = datetime.now().timestamp() - g.request_start_time

        logger = logging.getLogger('requests')

        extra_data = {
            'method': request.method,
            'path': request.path,
            'status_code': response.status_code,
            'duration_ms': round(duration * 1000, 2)
        }

        # Determine log level based on response status
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        elif duration > 5.0:  # Slow requests
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(log_level, f"Request completed: {request.method} {request.path}", extra=extra_data)

        if hasattr(g, 'correlation_id'):
            response.headers['X-Request-ID'] = g.correlation_id

    return response
