"""Estate Match settings: storage, bearer secrets, mail senders and digest tuning."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# backend/.env, wherever uvicorn or the cron runner is started from
_ENV_FILE = Path(__file__).resolve().parents[3] / ".env"


class Settings(BaseSettings):
    """Read from env vars such as ``API_TOKEN`` and ``CRON_SECRET``, or from backend/.env."""

    # Requirement, inventory and deal store
    database_url: str = "sqlite+aiosqlite:///./estate_match.db"

    # Bearer secrets for the interactive API, the cron trigger and the DB webhook
    api_token: str = "change-me-in-production"
    cron_secret: str = "change-me-in-production"
    webhook_secret: str = "change-me-in-production"

    # Digest and new-record notices (SendGrid)
    sendgrid_api_key: str = ""
    pending_informer_from: str = "pendinginformer@example.com"
    create_informer_from: str = "createinformer@example.com"
    notification_batch_size: int = 50

    # A deal or requirement idle this long lands in the pending digest
    stale_after_days: int = 7
    stale_requirement_limit: int = 10
    staleness_check_interval_minutes: int = 0  # 0 disables the in-process loop

    # Matching / assignments
    enforce_assignment_uniqueness: bool = False

    # Broker dashboard origins
    cors_origins: str = "http://localhost:3000"

    # Verbose logging, open CORS
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Dashboard origins from the comma-separated setting; any origin in debug."""
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
