from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    phonepe_merchant_id: str | None = None
    phonepe_salt_key: str | None = None
    phonepe_salt_index: str | None = None
    phonepe_base_url: str = "https://api.phonepe.com/apis/hermes"
    phonepe_timeout_seconds: float = 10.0

    # client_redirect: the browser posts the signed payload itself.
    # server_initiated: the backend calls pg/v1/pay and returns the redirect url.
    payment_mode: str = "client_redirect"
    payment_instrument_type: str = "UPI_INTENT"

    # background: the email goes out after the response is sent.
    # inline: the verify response waits for the email call.
    notification_mode: str = "background"
    notification_dedupe_enabled: bool = True
    notification_dedupe_size: int = 10000

    email_api_url: str = "https://api.brevo.com/v3/smtp/email"
    email_api_key: str | None = None
    email_sender_address: str | None = None
    email_sender_name: str = "Storefront"
    email_timeout_seconds: float = 10.0

    cors_origins: str = "*"
    host: str = "0.0.0.0"
    port: int = 8081

    env: str = "dev"
    log_level: str = "info"

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        return origins or ["*"]

    @property
    def missing_gateway_settings(self) -> list[str]:
        required = {
            "PHONEPE_MERCHANT_ID": self.phonepe_merchant_id,
            "PHONEPE_SALT_KEY": self.phonepe_salt_key,
            "PHONEPE_SALT_INDEX": self.phonepe_salt_index,
        }
        return [name for name, value in required.items() if not (value or "").strip()]

    @property
    def secret_values(self) -> list[str]:
        return [value for value in (self.phonepe_salt_key, self.email_api_key) if value]


settings = Settings()


def get_settings() -> Settings:
    return settings
