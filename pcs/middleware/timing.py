"""
Request timing.

Stamps each response with ``X-Request-ID`` (echoing the caller's header
when present) and ``X-Request-Duration-Ms``, and logs one line per API
request. Requests slower than SLOW_REQUEST_MS are logged as warnings.
"""

import logging
import time
import uuid

from flask import g, request

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000

# Polled by the web client and load balancers
QUIET_PATHS = frozenset({"/api/v1/health/ready", "/api/v1/health/live", "/api/v1/notifications/unread"})


def _log_level(status, duration_ms):
    if status >= 500:
        return logging.ERROR
    if duration_ms > SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.DEBUG


def init_request_timing(app):

    @app.before_request
    def _mark_start():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _stamp(response):
        started = g.get("request_start")
        if started is None:
            return response
        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path in QUIET_PATHS and response.status_code < 500:
            return response
        logger.log(
            _log_level(response.status_code, duration_ms),
            "%s %s -> %d (%.0fms)", request.method, request.path, response.status_code, duration_ms,
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 1),
                "remote_addr": request.remote_addr,
            },
        )
        return response
