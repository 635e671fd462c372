from enum import StrEnum


class PushPriority(StrEnum):
    HIGH = "high"
    NORMAL = "normal"


class GateDecision(StrEnum):
    ADMIT = "admit"
    BLOCKED_DISABLED = "blocked_disabled"
    BLOCKED_QUIET_HOURS = "blocked_quiet_hours"


class ProviderErrorCode(StrEnum):
    """Per-target error codes returned by the FCM legacy API."""

    INVALID_REGISTRATION = "InvalidRegistration"
    NOT_REGISTERED = "NotRegistered"
    MISSING_REGISTRATION = "MissingRegistration"
    MESSAGE_TOO_BIG = "MessageTooBig"
    UNAVAILABLE = "Unavailable"
    INTERNAL_SERVER_ERROR = "InternalServerError"


# Errors meaning the endpoint will never accept a push again.
INVALID_ENDPOINT_ERRORS: frozenset[str] = frozenset({
    ProviderErrorCode.INVALID_REGISTRATION,
    ProviderErrorCode.NOT_REGISTERED,
})
