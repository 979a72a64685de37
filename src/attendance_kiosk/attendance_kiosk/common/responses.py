from __future__ import annotations

import logging
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import (
    DomainError,
    DuplicateIdentity,
    IdentityNotFound,
    ResolverFailure,
    StoreUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (IdentityNotFound, 404),
    (DuplicateIdentity, 409),
    (ResolverFailure, 502),
    (StoreUnavailable, 503),
)


def json_body() -> dict:
    """Parsed JSON object body; a missing or non-object body is a ValidationError."""
    body = request.get_json(silent=True)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body format.")
    return body


def json_error(message: str, status: int, **extra: Any):
    payload = {"success": False, "message": message}
    payload.update(extra)
    return jsonify(payload), status


def error_response(exc: Exception, *, debug: bool = False, context: Optional[str] = None):
    """Map a service exception onto a JSON error response."""
    if isinstance(exc, DomainError):
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return json_error(str(exc), status)
        return json_error(str(exc), 500)

    logger.exception("Unhandled error%s", f" in {context}" if context else "")
    if debug:
        return json_error("Internal Server Error", 500, error=str(exc))
    return json_error("Internal Server Error", 500)
