"""
Production configuration validation for the drayage back office
Ensures required environment variables are present and sane
"""
import os
import logging
from typing import Dict, List, Tuple, Any

import pytz

logger = logging.getLogger(__name__)

class ConfigValidationError(Exception):
    """Raised when critical configuration is missing or invalid"""
    pass

def validate_flask_config() -> Tuple[bool, List[str]]:
    """
    Validate Flask configuration for production.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    # Check session secret
    session_secret = os.getenv('SESSION_SECRET')
    if not session_secret:
        issues.append("Missing SESSION_SECRET environment variable")
    elif len(session_secret) < 32:
        issues.append("SESSION_SECRET should be at least 32 characters for security")

    jwt_secret = os.getenv('JWT_SECRET_KEY')
    if jwt_secret and len(jwt_secret) < 32:
        issues.append("JWT_SECRET_KEY should be at least 32 characters for security")

    # Check DEBUG mode in production
    debug_mode = os.getenv('DEBUG', 'False').lower()
    if debug_mode in ('true', '1', 'yes'):
        issues.append("DEBUG mode is enabled - should be disabled in production")

    return len(issues) == 0, issues

def validate_database_config() -> Tuple[bool, List[str]]:
    """
    Validate the database URL.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []
    database_url = os.getenv('DATABASE_URL', '').strip()

    if not database_url:
        issues.append("DATABASE_URL not set - falling back to local SQLite database")
    elif not database_url.startswith(('postgresql://', 'postgres://', 'postgresql+psycopg2://', 'sqlite:///')):
        issues.append(f"Unsupported DATABASE_URL scheme: {database_url.split(':', 1)[0]}")
    elif database_url.startswith('sqlite:///') and os.getenv('FLASK_ENV') == 'production':
        issues.append("SQLite database configured in production")

    return len(issues) == 0, issues

def validate_runtime_config() -> Tuple[bool, List[str]]:
    """
    Validate timezone, CORS and API auth settings.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    timezone_name = os.getenv('APP_TIMEZONE')
    if timezone_name and timezone_name not in pytz.all_timezones_set:
        issues.append(f"APP_TIMEZONE '{timezone_name}' is not a known timezone")

    origins = [origin.strip() for origin in os.getenv('ALLOWED_ORIGINS', '').split(',') if origin.strip()]
    for origin in origins:
        if not origin.startswith(('http://', 'https://')):
            issues.append(f"ALLOWED_ORIGINS entry '{origin}' must include the scheme")

    if os.getenv('FLASK_ENV') == 'production' and os.getenv('REQUIRE_API_AUTH', 'false').lower() != 'true':
        issues.append("REQUIRE_API_AUTH is disabled in production - the API is open to anyone who can reach it")

    return len(issues) == 0, issues

VALIDATORS = (
    ('flask_configured', validate_flask_config, "Set SESSION_SECRET and JWT_SECRET_KEY to random 32+ character values"),
    ('database_configured', validate_database_config, "Point DATABASE_URL at a PostgreSQL database"),
    ('runtime_configured', validate_runtime_config, "Enable REQUIRE_API_AUTH and list the SPA origins in ALLOWED_ORIGINS"),
)

def check_production_readiness() -> Dict[str, Any]:
    """
    Run every configuration check.

    Returns:
        dict: production_ready, debug_mode, one flag per check area,
              issues and recommendations
    """
    debug_mode = os.getenv('DEBUG', 'False').lower() in ('true', '1', 'yes')
    result = {'debug_mode': debug_mode, 'issues': [], 'recommendations': []}

    for flag, validator, recommendation in VALIDATORS:
        valid, issues = validator()
        result[flag] = valid
        result['issues'].extend(issues)
        if not valid:
            result['recommendations'].append(recommendation)

    result['production_ready'] = not result['issues'] and not debug_mode

    if result['production_ready']:
        logger.info("CONFIG: Production readiness check PASSED")
    else:
        logger.warning(f"CONFIG: Production readiness check FAILED - Issues: {len(result['issues'])}")

    return result

def require_session_secret() -> str:
    """
    Return SESSION_SECRET or raise ConfigValidationError when it is missing.
    """
    session_secret = os.getenv('SESSION_SECRET')
    if not session_secret:
        raise ConfigValidationError("SESSION_SECRET environment variable is required but not set")
    return session_secret
