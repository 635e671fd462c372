"""Push pipeline: validate, gate, batch, deliver, aggregate, clean up."""

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shared.db.repositories import UserPreferenceRepository
from shared.enums import GateDecision

from push_sender.aggregator import DeliveryOutcome, ResultAggregator
from push_sender.batching import plan_batches
from push_sender.cleanup import CleanupNotifier, StorageCleanupNotifier
from push_sender.config import FcmConfig, PushSenderConfig
from push_sender.errors import ConfigurationError
from push_sender.fcm import FcmClient
from push_sender.quiet_hours import evaluate_preferences, quiet_hours_resume_at
from push_sender.retry import ExponentialBackoff
from push_sender.schemas import NotificationRequest, PreferenceRecord
from push_sender.validation import validate_payload

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime.datetime]


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


@dataclass(frozen=True, slots=True)
class PushResult:
    """What the HTTP layer reports back for one request."""

    success: bool
    sent: int
    failed: int
    message: str
    decision: GateDecision = GateDecision.ADMIT
    invalid_endpoints: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": self.success,
            "sent": self.sent,
            "failed": self.failed,
            "message": self.message,
        }
        if self.decision != GateDecision.ADMIT:
            body["blocked"] = str(self.decision)
        else:
            body["invalidEndpoints"] = self.invalid_endpoints
        body.update(self.extra)
        return body


class PushPipeline:
    """Runs one push request end to end.

    Configuration and collaborators are fixed at construction; ``run`` does
    not read the environment.
    """

    def __init__(
        self,
        fcm_config: FcmConfig,
        sender_config: PushSenderConfig,
        session_factory: sessionmaker[Session] | None,
        *,
        notifier: CleanupNotifier | None = None,
        backoff: ExponentialBackoff | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._fcm_config = fcm_config
        self._sender_config = sender_config
        self._session_factory = session_factory
        if notifier is None and session_factory is not None:
            notifier = StorageCleanupNotifier(session_factory)
        self._notifier = notifier
        self._backoff = backoff or ExponentialBackoff(
            base=sender_config.backoff_base_seconds
        )
        self._transport = transport
        self._clock = clock

    @property
    def is_configured(self) -> bool:
        return self._fcm_config.is_configured and self._notifier is not None

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if a provider or storage credential is missing."""
        if not self._fcm_config.is_configured:
            raise ConfigurationError("FCM server key is not configured")
        if self._session_factory is None or self._notifier is None:
            raise ConfigurationError("Storage is not configured")

    async def run(self, raw_payload: Any) -> PushResult:
        """Process a decoded JSON payload.

        Raises:
            ConfigurationError: before any work if credentials are missing.
            ValidationError: if the payload is malformed.
        """
        self.ensure_configured()
        request = validate_payload(
            raw_payload, max_endpoints=self._sender_config.max_endpoints
        )
        log_ctx: dict[str, Any] = {
            "user_id": request.user_id,
            "endpoints": len(request.device_endpoints),
        }

        now = self._clock()
        preference = self._load_preference(request.user_id)
        decision = evaluate_preferences(preference, now)
        if decision != GateDecision.ADMIT:
            return self._blocked(request, preference, decision, now, log_ctx)

        outcome = await self._deliver(request, log_ctx)
        self._after_delivery(request, outcome, log_ctx)

        logger.info(
            "Push request processed",
            extra={
                **log_ctx,
                "sent": outcome.total_success,
                "failed": outcome.total_failure,
                "invalid_endpoints": len(outcome.invalid_endpoints),
            },
        )
        return PushResult(
            success=outcome.total_success > 0,
            sent=outcome.total_success,
            failed=outcome.total_failure,
            message=_summary(outcome),
            invalid_endpoints=len(outcome.invalid_endpoints),
        )

    async def _deliver(
        self, request: NotificationRequest, log_ctx: dict[str, Any]
    ) -> DeliveryOutcome:
        batches = plan_batches(request, self._sender_config.batch_size)
        aggregator = ResultAggregator()

        # One batch in flight per request.
        async with FcmClient(
            self._fcm_config, backoff=self._backoff, transport=self._transport
        ) as fcm:
            for index, batch in enumerate(batches):
                response = await fcm.send_batch(
                    batch,
                    self._sender_config.max_retries,
                    log_ctx={**log_ctx, "batch_index": index},
                )
                aggregator.add(batch, response)

        return aggregator.outcome()

    def _after_delivery(
        self,
        request: NotificationRequest,
        outcome: DeliveryOutcome,
        log_ctx: dict[str, Any],
    ) -> None:
        user_id = request.user_id
        if outcome.invalid_endpoints:
            self._best_effort(
                "remove_endpoints",
                log_ctx,
                lambda n: n.remove_endpoints(user_id, outcome.invalid_endpoints),
            )

        error_summary = None
        if outcome.total_failure:
            error_summary = (
                f"{outcome.total_failure} of "
                f"{outcome.total_success + outcome.total_failure} deliveries failed"
            )
        self._best_effort(
            "record_attempt",
            log_ctx,
            lambda n: n.record_attempt(
                user_id, outcome.total_success > 0, error_summary
            ),
        )

        if outcome.total_success > 0 and request.issue_id is not None:
            issue_id = request.issue_id
            self._best_effort(
                "record_alert",
                log_ctx,
                lambda n: n.record_alert(
                    user_id,
                    issue_id,
                    request.distance_km,
                    request.title,
                    request.message,
                ),
            )

    def _blocked(
        self,
        request: NotificationRequest,
        preference: PreferenceRecord | None,
        decision: GateDecision,
        now: datetime.datetime,
        log_ctx: dict[str, Any],
    ) -> PushResult:
        extra: dict[str, Any] = {}
        if decision == GateDecision.BLOCKED_DISABLED:
            message = "User has disabled push notifications"
        else:
            message = "Notification suppressed during quiet hours"
            resume_at = (
                quiet_hours_resume_at(preference, now) if preference else None
            )
            if resume_at is not None:
                extra["resumeAt"] = resume_at.isoformat()

        logger.info(message, extra={**log_ctx, "decision": str(decision)})
        self._best_effort(
            "record_attempt",
            log_ctx,
            lambda n: n.record_attempt(
                request.user_id, False, message
            ),
        )
        return PushResult(
            success=False,
            sent=0,
            failed=0,
            message=message,
            decision=decision,
            extra=extra,
        )

    def _load_preference(self, user_id: str) -> PreferenceRecord | None:
        """Fetch the user's preference record; a failed read counts as none."""
        if self._session_factory is None:
            return None
        try:
            with self._session_factory() as session:
                row = UserPreferenceRepository(session).get_by_user_id(user_id)
                if row is None:
                    return None
                return PreferenceRecord.model_validate(row)
        except SQLAlchemyError:
            logger.exception(
                "Preference lookup failed, delivering without gating",
                extra={"user_id": user_id},
            )
            return None

    def _best_effort(
        self,
        operation: str,
        log_ctx: dict[str, Any],
        call: Callable[[CleanupNotifier], None],
    ) -> None:
        if self._notifier is None:
            return
        try:
            call(self._notifier)
        except Exception:
            logger.exception(
                "Storage write failed",
                extra={**log_ctx, "operation": operation},
            )


def _summary(outcome: DeliveryOutcome) -> str:
    if outcome.total_failure == 0:
        return f"Delivered to {outcome.total_success} device(s)"
    if outcome.total_success == 0:
        return f"Delivery failed for all {outcome.total_failure} device(s)"
    return (
        f"Delivered to {outcome.total_success} device(s), "
        f"{outcome.total_failure} failed"
    )
