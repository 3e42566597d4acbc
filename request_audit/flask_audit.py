"""Flask integration: record every request through a RequestLogManager."""

import logging
import uuid

from flask import Flask, g, request

from request_audit.entry import build_record
from request_audit.manager import RequestLogManager

logger = logging.getLogger(__name__)

EXTENSION_KEY = "request_audit"
REQUEST_ID_HEADER = "X-Request-Id"


def _int_attr(name: str) -> int:
    value = g.get(name, 0)
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _str_attr(name: str) -> str:
    value = g.get(name, "")
    return str(value) if value else ""


def current_request_id() -> str:
    """Request id from g, then the X-Request-Id header, else a fresh one cached on g."""
    request_id = g.get("request_id") or request.headers.get(REQUEST_ID_HEADER)
    if not request_id:
        request_id = uuid.uuid4().hex
    g.request_id = request_id
    return request_id


def record_from_request(time_func=None):
    """Build a LogRecord from the current Flask request and the handler-populated g."""
    return build_record(
        request_id=current_request_id(),
        method=request.method,
        path=request.path,
        body=request.get_data(cache=True),
        user_id=_int_attr("user_id"),
        token_name=_str_attr("token_name"),
        channel_id=_int_attr("channel_id"),
        channel_name=_str_attr("channel_name"),
        model=_str_attr("model"),
        original_model=_str_attr("original_model"),
        content_type=request.headers.get("Content-Type", ""),
        time_func=time_func,
    )


def install_request_audit(app: Flask, manager: RequestLogManager) -> RequestLogManager:
    """Register hooks that append each request to the audit log.

    The body is cached before the view runs so handlers that parse
    request.form still leave the raw bytes available for the record.
    """
    app.extensions[EXTENSION_KEY] = manager

    @app.before_request
    def _cache_request_body():
        if manager.config.enabled:
            request.get_data(cache=True, parse_form_data=False)

    @app.after_request
    def _audit_request(response):
        if not manager.config.enabled:
            return response
        try:
            manager.log_request(record_from_request(manager.time_func))
        except Exception:
            logger.exception("Failed to record request %s %s", request.method, request.path)
        return response

    return manager
