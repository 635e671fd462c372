from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PushSenderConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PUSH_SENDER_")

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    max_retries: int = 3
    backoff_base_seconds: float = 2.0
    batch_size: int = 500
    max_endpoints: int = 1000
    cors_allow_origin: str = "*"


class FcmConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FCM_")

    server_key: SecretStr | None = None
    endpoint: str = "https://fcm.googleapis.com/fcm/send"
    timeout_seconds: float = 10.0

    @property
    def is_configured(self) -> bool:
        return (
            self.server_key is not None
            and bool(self.server_key.get_secret_value().strip())
        )
