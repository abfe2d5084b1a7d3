import os
from dotenv import load_dotenv

load_dotenv()


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes', 'on')


def _get_origins():
    """
    Parse CORS_ORIGINS.

    '*' (default) allows every origin; otherwise a comma-separated list.
    """
    raw = os.getenv('CORS_ORIGINS', '*').strip()
    if raw == '*':
        return '*'
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
    DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    CORS_ORIGINS = _get_origins()

    # Version negotiation: header wins over query param; neither means latest
    CONTRACT_VERSION_HEADER = os.getenv('CONTRACT_VERSION_HEADER', 'X-API-Contract-Version')
    CONTRACT_VERSION_PARAM = os.getenv('CONTRACT_VERSION_PARAM', 'version')

    # Reject late registration once create_app() has loaded every contract
    CONTRACT_SEAL_ON_STARTUP = _get_bool('CONTRACT_SEAL_ON_STARTUP', 'true')
