"""
Per-request id and access logging
"""
import time
import uuid

import structlog
from flask import g, request

REQUEST_ID_HEADER = 'X-Request-ID'

logger = structlog.get_logger(__name__)


def init_request_logging(app):
    """Bind a request id to every log line and log each completed request."""

    @app.before_request
    def bind_request_id():
        structlog.contextvars.clear_contextvars()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_id = request_id
        g.request_started = time.perf_counter()
        structlog.contextvars.bind_contextvars(request_id=request_id)

    @app.after_request
    def log_request(response):
        request_id = g.get('request_id')
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id

        started = g.get('request_started')
        duration_ms = round((time.perf_counter() - started) * 1000, 2) if started else None
        logger.info(
            'request completed',
            method=request.method,
            path=request.path,
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response
