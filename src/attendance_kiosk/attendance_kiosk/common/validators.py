from __future__ import annotations

import base64
import binascii
import re
from typing import Optional, Sequence
from urllib.parse import urlparse

from ..core.constants import MIN_DESCRIPTOR_LENGTH
from ..core.enums import Role
from ..core.exceptions import ValidationError

_DATA_URL_RE = re.compile(r"^data:[^;,]+;base64,(.*)$", re.DOTALL)


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_http_url(value: str, field_name: str) -> str:
    value = require_non_empty(value, field_name)
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{field_name} must be an http(s) URL")
    return value


def require_role(value: str) -> Role:
    try:
        return Role(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        raise ValidationError(f"role must be one of: {allowed}")


def decode_data_url(value: str) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` image into raw bytes."""
    m = _DATA_URL_RE.match(value or "")
    if not m:
        raise ValidationError("Invalid imageData (expected dataURL)")
    try:
        data = base64.b64decode(m.group(1), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid imageData (bad base64 payload)")
    if not data:
        raise ValidationError("Invalid imageData (empty image)")
    return data


def require_descriptor(value: Optional[Sequence[float]]) -> Optional[tuple[float, ...]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise ValidationError("descriptor must be an array of numbers")
    if len(value) < MIN_DESCRIPTOR_LENGTH:
        raise ValidationError("Descriptor too short")
    try:
        return tuple(float(x) for x in value)
    except (TypeError, ValueError):
        raise ValidationError("descriptor must be an array of numbers")
