# Utils package - logging setup and configuration checks shared by the app factory
from .logging_config import setup_logging, JSONFormatter, RequestContextFilter
from .config_validator import (
    ConfigValidationError,
    check_production_readiness,
    require_valid_config,
)

__all__ = [
    'setup_logging',
    'JSONFormatter',
    'RequestContextFilter',
    'ConfigValidationError',
    'check_production_readiness',
    'require_valid_config',
]
