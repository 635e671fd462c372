"""FCM delivery engine: one batch, bounded retries, failure classification."""

import logging
from typing import Any

import httpx
import pydantic

from push_sender.batching import NotificationBatch
from push_sender.config import FcmConfig
from push_sender.errors import (
    ConfigurationError,
    ProviderTerminalError,
    ProviderTransientError,
)
from push_sender.retry import ExponentialBackoff
from push_sender.schemas import ProviderResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class FcmClient:
    """Async client for the FCM legacy HTTP send endpoint.

    Use as an async context manager so the underlying connection pool is
    closed when the request that owns it is done::

        async with FcmClient(config) as fcm:
            response = await fcm.send_batch(batch)

    Args:
        config: Endpoint, server key and timeout.
        backoff: Wait strategy between attempts.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        config: FcmConfig,
        *,
        backoff: ExponentialBackoff | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._backoff = backoff or ExponentialBackoff()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "FcmClient":
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        key = self._config.server_key
        if key is None or not key.get_secret_value().strip():
            raise ConfigurationError("FCM server key is not configured")
        return {
            "Authorization": f"key={key.get_secret_value()}",
            "Content-Type": "application/json",
        }

    async def send_batch(
        self,
        batch: NotificationBatch,
        max_retries: int = DEFAULT_MAX_RETRIES,
        *,
        log_ctx: dict[str, Any] | None = None,
    ) -> ProviderResponse | None:
        """Deliver one batch.

        The batch is tried once and retried up to *max_retries* more times
        on transient failures, waiting ``backoff.wait(attempt)`` before each
        retry. A 4xx stops immediately.

        Returns the parsed provider response, or None when every attempt
        failed or a terminal failure occurred. Never raises provider errors.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")

        ctx = {**(log_ctx or {}), "targets": len(batch.targets)}
        total_attempts = max_retries + 1

        for attempt in range(1, total_attempts + 1):
            try:
                return await self._attempt(batch)
            except ProviderTerminalError as exc:
                logger.error(
                    "Provider rejected batch, not retrying",
                    extra={
                        **ctx,
                        "attempt": attempt,
                        "status_code": exc.status_code,
                        "reason": str(exc),
                    },
                )
                return None
            except ProviderTransientError as exc:
                if attempt == total_attempts:
                    logger.error(
                        "Batch delivery failed, retries exhausted",
                        extra={
                            **ctx,
                            "attempt": attempt,
                            "status_code": exc.status_code,
                            "reason": str(exc),
                        },
                    )
                    return None
                logger.warning(
                    "Transient provider failure, backing off",
                    extra={
                        **ctx,
                        "attempt": attempt,
                        "status_code": exc.status_code,
                        "backoff_seconds": self._backoff.delay_for(attempt),
                        "reason": str(exc),
                    },
                )
                await self._backoff.wait(attempt)

        return None

    async def _attempt(self, batch: NotificationBatch) -> ProviderResponse:
        """Issue a single POST and classify the result.

        Raises:
            ProviderTransientError: 5xx, other non-2xx, timeout, transport error.
            ProviderTerminalError: 4xx, or a 2xx body that does not parse.
        """
        client = self._get_client()
        try:
            response = await client.post(
                self._config.endpoint,
                json=batch.to_payload(),
                headers=self._headers(),
            )
        except httpx.TransportError as exc:
            raise ProviderTransientError(f"{type(exc).__name__}: {exc}") from exc

        status = response.status_code
        if 400 <= status < 500:
            raise ProviderTerminalError(
                f"Provider returned {status}: {response.text[:200]}",
                status_code=status,
            )
        if not response.is_success:
            raise ProviderTransientError(
                f"Provider returned {status}", status_code=status
            )

        try:
            return ProviderResponse.model_validate(response.json())
        except (ValueError, pydantic.ValidationError) as exc:
            raise ProviderTerminalError(
                f"Unparseable provider response: {exc}", status_code=status
            ) from exc
