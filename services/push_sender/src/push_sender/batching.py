"""Split a request's endpoints into provider-sized batches."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from push_sender.schemas import NotificationRequest

FCM_MAX_TARGETS = 500

NOTIFICATION_TYPE = "new_issue_alert"
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


@dataclass(frozen=True, slots=True)
class NotificationBatch:
    """One provider request's worth of targets plus the shared content."""

    targets: tuple[str, ...]
    notification: Mapping[str, Any]
    data: Mapping[str, str]
    priority: str
    time_to_live: int

    @property
    def is_single(self) -> bool:
        return len(self.targets) == 1

    def to_payload(self) -> dict[str, Any]:
        """Build the FCM request body.

        A lone target goes in ``to``; several go in ``registration_ids``.
        """
        payload: dict[str, Any] = {
            "notification": dict(self.notification),
            "data": dict(self.data),
            "priority": self.priority,
            "time_to_live": self.time_to_live,
        }
        if self.is_single:
            payload["to"] = self.targets[0]
        else:
            payload["registration_ids"] = list(self.targets)
        return payload


def plan_batches(
    request: NotificationRequest, batch_size: int = FCM_MAX_TARGETS
) -> list[NotificationBatch]:
    """Partition ``request.device_endpoints`` into contiguous batches.

    Batch ``i`` holds endpoints ``[i*batch_size, (i+1)*batch_size)``, so
    concatenating the batches' targets gives back the original list.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    notification = _build_notification(request)
    data = _build_data(request)
    endpoints = request.device_endpoints

    return [
        NotificationBatch(
            targets=tuple(endpoints[start:start + batch_size]),
            notification=dict(notification),
            data=dict(data),
            priority=str(request.priority),
            time_to_live=request.time_to_live_seconds,
        )
        for start in range(0, len(endpoints), batch_size)
    ]


def _build_notification(request: NotificationRequest) -> dict[str, Any]:
    return {
        "title": request.title,
        "body": request.message,
        "sound": "default",
        "badge": 1,
    }


def _build_data(request: NotificationRequest) -> dict[str, str]:
    # FCM data values must be strings; unset optionals are left out.
    data = {
        "type": NOTIFICATION_TYPE,
        "click_action": CLICK_ACTION,
    }
    if request.issue_id is not None:
        data["issueId"] = request.issue_id
    if request.distance_km is not None:
        data["distanceKm"] = _format_distance(request.distance_km)
    return data


def _format_distance(distance_km: float) -> str:
    if distance_km.is_integer():
        return str(int(distance_km))
    return str(distance_km)
