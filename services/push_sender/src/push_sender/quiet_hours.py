"""Preference gating: the enabled flag and the quiet-hours window."""

import datetime
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.enums import GateDecision

from push_sender.schemas import PreferenceRecord

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def evaluate_preferences(
    record: PreferenceRecord | None,
    now_utc: datetime.datetime | None = None,
) -> GateDecision:
    """Decide whether a push may go out to this user right now.

    A missing record admits the notification. Quiet hours only apply when
    both bounds are set, and are evaluated in the record's timezone.
    """
    if record is None:
        return GateDecision.ADMIT

    if not record.push_enabled:
        return GateDecision.BLOCKED_DISABLED

    if record.quiet_hours_start is None or record.quiet_hours_end is None:
        return GateDecision.ADMIT

    local = _to_local(record, now_utc)
    if _is_in_quiet_hours(
        _minute_of_day(local.time()),
        _minute_of_day(record.quiet_hours_start),
        _minute_of_day(record.quiet_hours_end),
    ):
        return GateDecision.BLOCKED_QUIET_HOURS
    return GateDecision.ADMIT


def quiet_hours_resume_at(
    record: PreferenceRecord,
    now_utc: datetime.datetime | None = None,
) -> datetime.datetime | None:
    """Return the UTC instant the current quiet window closes.

    Returns None when the user is not inside quiet hours. The window end is
    inclusive, so delivery resumes one minute after ``quiet_hours_end``.
    """
    end = record.quiet_hours_end
    if (
        end is None
        or evaluate_preferences(record, now_utc) != GateDecision.BLOCKED_QUIET_HOURS
    ):
        return None

    local = _to_local(record, now_utc)
    end_local = local.replace(
        hour=end.hour,
        minute=end.minute,
        second=0,
        microsecond=0,
    ) + datetime.timedelta(minutes=1)

    # Window wraps midnight and we are in its evening half
    if end_local <= local:
        end_local += datetime.timedelta(days=1)

    return end_local.astimezone(datetime.UTC)


def _to_local(
    record: PreferenceRecord, now_utc: datetime.datetime | None
) -> datetime.datetime:
    if now_utc is None:
        now_utc = datetime.datetime.now(datetime.UTC)
    try:
        tz = ZoneInfo(record.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "Unknown preference timezone, using UTC",
            extra={"timezone": record.timezone},
        )
        tz = ZoneInfo("UTC")
    return now_utc.astimezone(tz)


def _minute_of_day(value: datetime.time) -> int:
    return value.hour * 60 + value.minute


def _is_in_quiet_hours(current: int, start: int, end: int) -> bool:
    """Check *current* against an inclusive [start, end] minute window.

    Handles wrap-around: start=22:00, end=06:00 covers
    [22:00, 24:00) and [00:00, 06:00].
    """
    if start <= end:
        return start <= current <= end
    return start <= current < MINUTES_PER_DAY or 0 <= current <= end
