"""
Configuration validation for Navexa
Checks the settings read by create_app and reports what is missing or suspect
"""
import logging
from typing import Dict, List, Tuple, Any, Mapping

import pytz

logger = logging.getLogger(__name__)

class ConfigValidationError(Exception):
    """Raised when critical configuration is missing or invalid"""
    pass

def validate_database_config(config: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate the database URL.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    database_url = config.get('SQLALCHEMY_DATABASE_URI') or ''
    if not database_url:
        issues.append("Missing database URL (DATABASE_URL)")
    elif not database_url.startswith(('sqlite://', 'postgresql://', 'postgresql+psycopg2://', 'mysql://')):
        issues.append(f"Unsupported database URL scheme: {database_url.split(':', 1)[0]}")

    return len(issues) == 0, issues

def validate_timezone_config(config: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate the fleet timezone used for the monthly window and due dates.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    tz_name = config.get('NAVEXA_TIMEZONE') or ''
    try:
        pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        issues.append(f"Unknown timezone in NAVEXA_TIMEZONE: '{tz_name}'")

    return len(issues) == 0, issues

def validate_insight_config(config: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate the Gemini settings for AI insights.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    api_key = (config.get('GEMINI_API_KEY') or '').strip()
    if not api_key:
        issues.append("Missing Gemini API key (GEMINI_API_KEY) - AI insights disabled")

    if not (config.get('GEMINI_MODEL') or '').strip():
        issues.append("Missing Gemini model name (GEMINI_MODEL)")

    base_url = config.get('GEMINI_API_BASE') or ''
    if base_url and not base_url.startswith(('https://', 'http://')):
        issues.append("GEMINI_API_BASE must be an http(s) URL")

    timeout = config.get('INSIGHT_TIMEOUT_SECONDS')
    if timeout is not None and timeout <= 0:
        issues.append("INSIGHT_TIMEOUT_SECONDS must be positive")

    return len(issues) == 0, issues

def check_production_readiness(config: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Comprehensive check of the application configuration.

    Returns:
        dict: Status information including issues and recommendations
    """
    database_valid, database_issues = validate_database_config(config)
    timezone_valid, timezone_issues = validate_timezone_config(config)
    insight_valid, insight_issues = validate_insight_config(config)

    all_issues = database_issues + timezone_issues + insight_issues

    result = {
        'production_ready': database_valid and timezone_valid,
        'insights_enabled': insight_valid,
        'issues': all_issues,
        'recommendations': []
    }

    if (config.get('SQLALCHEMY_DATABASE_URI') or '').startswith('sqlite:///:memory:'):
        result['recommendations'].append("In-memory database loses all trips on restart")

    if not insight_valid:
        result['recommendations'].append("Set GEMINI_API_KEY to enable dashboard insights")

    return result

def require_valid_config(config: Mapping[str, Any]) -> None:
    """
    Raise when configuration the app cannot run without is invalid.

    Raises:
        ConfigValidationError: listing every blocking issue
    """
    _, database_issues = validate_database_config(config)
    _, timezone_issues = validate_timezone_config(config)
    blocking = database_issues + timezone_issues
    if blocking:
        raise ConfigValidationError("; ".join(blocking))
