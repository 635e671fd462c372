"""Request, preference and provider response models."""

import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from shared.enums import PushPriority

MAX_TIME_TO_LIVE_SECONDS = 2_419_200  # four weeks, the FCM ceiling


class NotificationRequest(BaseModel):
    """A validated send request. Field aliases match the inbound JSON."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userId", min_length=1)
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    issue_id: str | None = Field(default=None, alias="issueId")
    distance_km: float | None = Field(default=None, alias="distanceKm")
    device_endpoints: list[str] = Field(
        alias="deviceEndpoints", min_length=1
    )
    priority: PushPriority = PushPriority.HIGH
    time_to_live_seconds: int = Field(
        default=86_400,
        alias="timeToLiveSeconds",
        ge=0,
        le=MAX_TIME_TO_LIVE_SECONDS,
    )


class PreferenceRecord(BaseModel):
    """Read-only view of a user's stored push preferences.

    Built from a ``UserPreference`` row, or from a plain dict where quiet
    hours may be given as ``"HH:MM"`` strings.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    push_enabled: bool = True
    quiet_hours_start: datetime.time | None = None
    quiet_hours_end: datetime.time | None = None
    timezone: str = "UTC"


class ProviderTargetResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: str | None = None
    error: str | None = None
    # Only set when the provider echoes which endpoint the entry belongs to.
    target: str | None = Field(
        default=None,
        validation_alias=AliasChoices("target", "token", "registration_token"),
    )


class ProviderResponse(BaseModel):
    """Body of a 2xx FCM legacy send response.

    ``per_target_results`` is ordered like the batch's target list.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    multicast_id: int | None = None
    success_count: int = Field(alias="success", ge=0)
    failure_count: int = Field(alias="failure", ge=0)
    per_target_results: list[ProviderTargetResult] = Field(
        default_factory=list, alias="results"
    )
