"""Error kinds raised by the push sender.

Validation and configuration errors abort a request before any provider
call. Provider errors never leave the delivery engine: they are contained
per batch. Storage write failures are logged and swallowed by the pipeline.
"""


class PushSenderError(Exception):
    """Base class for all push sender errors."""


class ValidationError(PushSenderError):
    """The inbound payload violates a shape or bounds constraint."""


class ConfigurationError(PushSenderError):
    """A provider or storage credential required to serve requests is missing."""


class ProviderError(PushSenderError):
    """A single delivery attempt against the push provider failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderTransientError(ProviderError):
    """5xx, timeout or transport failure; worth retrying."""


class ProviderTerminalError(ProviderError):
    """4xx or unparseable success body; retrying cannot help."""


class StorageWriteFailure(PushSenderError):
    """A best-effort write (endpoint cleanup, audit log, alert) failed."""
