"""Fold per-batch provider outcomes into request totals."""

import logging
from dataclasses import dataclass, field

from shared.enums import INVALID_ENDPOINT_ERRORS

from push_sender.batching import NotificationBatch
from push_sender.schemas import ProviderResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    total_success: int = 0
    total_failure: int = 0
    invalid_endpoints: frozenset[str] = field(default_factory=frozenset)


class ResultAggregator:
    """Accumulates batch results in the order batches were sent."""

    def __init__(self) -> None:
        self._success = 0
        self._failure = 0
        self._invalid: set[str] = set()
        self._ordered_invalid: list[str] = []

    def add(self, batch: NotificationBatch, response: ProviderResponse | None) -> None:
        """Merge one batch's outcome.

        ``None`` means the whole batch failed: every target counts as a
        failure and no endpoint can be flagged invalid.
        """
        if response is None:
            self._failure += len(batch.targets)
            return

        self._success += response.success_count
        self._failure += response.failure_count

        for endpoint in _invalid_targets(batch, response):
            if endpoint not in self._invalid:
                self._invalid.add(endpoint)
                self._ordered_invalid.append(endpoint)

    @property
    def invalid_endpoints_in_order(self) -> list[str]:
        return list(self._ordered_invalid)

    def outcome(self) -> DeliveryOutcome:
        return DeliveryOutcome(
            total_success=self._success,
            total_failure=self._failure,
            invalid_endpoints=frozenset(self._invalid),
        )


def _invalid_targets(
    batch: NotificationBatch, response: ProviderResponse
) -> list[str]:
    """Map invalid-endpoint errors in *response* back to endpoints.

    Results that name a target from this batch are attributed to it.
    Unnamed results are matched by position, which is only safe when the
    provider returned one entry per target; otherwise they are skipped.
    """
    results = response.per_target_results
    aligned = len(results) == len(batch.targets)
    if not aligned and any(r.target is None for r in results):
        logger.warning(
            "Provider results not aligned with batch targets, "
            "skipping positional invalid-endpoint attribution",
            extra={"targets": len(batch.targets), "results": len(results)},
        )

    invalid: list[str] = []
    for position, result in enumerate(results):
        if result.error not in INVALID_ENDPOINT_ERRORS:
            continue
        if result.target is not None:
            if result.target in batch.targets:
                invalid.append(result.target)
        elif aligned:
            invalid.append(batch.targets[position])
    return invalid
