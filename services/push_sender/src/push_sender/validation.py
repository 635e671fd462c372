"""Inbound payload validation."""

from typing import Any

import pydantic

from push_sender.errors import ValidationError
from push_sender.schemas import NotificationRequest

MAX_DEVICE_ENDPOINTS = 1000

_REQUIRED_STRINGS = ("userId", "title", "message")


def validate_payload(
    raw: Any, max_endpoints: int = MAX_DEVICE_ENDPOINTS
) -> NotificationRequest:
    """Turn a decoded JSON body into a NotificationRequest.

    Constraints are checked in a fixed order and the first violation is
    reported: userId, title, message, deviceEndpoints non-empty,
    deviceEndpoints size. Optional fields are checked last.

    Raises:
        ValidationError: naming the violated constraint.
    """
    if not isinstance(raw, dict):
        raise ValidationError("Request body must be a JSON object")

    for field in _REQUIRED_STRINGS:
        value = raw.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"'{field}' is required and must be a non-empty string")

    endpoints = raw.get("deviceEndpoints")
    if not isinstance(endpoints, list) or not endpoints:
        raise ValidationError("'deviceEndpoints' must be a non-empty list")

    if len(endpoints) > max_endpoints:
        raise ValidationError(
            f"'deviceEndpoints' accepts at most {max_endpoints} entries, "
            f"got {len(endpoints)}"
        )

    try:
        return NotificationRequest.model_validate(raw)
    except pydantic.ValidationError as exc:
        first = exc.errors(include_url=False)[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"'{location}': {first['msg']}") from exc
