"""Service configuration, read from the environment and an optional .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Snapshot cache / fetching
    cache_ttl_seconds: float = 300.0
    fetch_timeout_seconds: float = 15.0
    fetch_concurrency: int = 20
    user_agent: str = "watch-sys-status-bot/1.0"

    # Chat webhooks
    enable_notifications: bool = False
    discord_webhook_url: str = ""
    teams_webhook_url: str = ""
    dedup_capacity: int = 500

    # Email digests
    enable_email_notifications: bool = False
    email_smtp_host: str = "smtp.gmail.com"
    email_smtp_port: int = 587
    email_smtp_user: str = ""
    email_smtp_pass: str = ""
    email_from: str = ""

    # Persistence
    database_url: str = ""
    subscribers_file: str = "subscribers.json"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 5174
    cors_origins: list[str] = ["*"]

    @property
    def email_sender(self) -> str:
        return self.email_from or self.email_smtp_user

    @property
    def email_configured(self) -> bool:
        return bool(
            self.enable_email_notifications
            and self.email_smtp_user
            and self.email_smtp_pass
        )
