"""
Rate limiting configuration for the users service
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

DEFAULT_LIMITS = ["1000 per hour", "100 per minute"]


def init_limiter(app, config):
    """Attach a rate limiter to the Flask app.

    Uses Redis when ``REDIS_URL`` was configured, memory otherwise.
    """
    storage_uri = config.ratelimit_storage_uri
    storage_options = {}
    if storage_uri.startswith('redis'):
        storage_options = {"socket_connect_timeout": 30}

    limiter = Limiter(
        get_remote_address,
        app=app,
        storage_uri=storage_uri,
        storage_options=storage_options,
        default_limits=DEFAULT_LIMITS,
        strategy="fixed-window",
        enabled=config.ratelimit_enabled,
    )
    return limiter
