"""Runtime configuration for the gateway and the MCP tool server."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path.home() / ".clickup-relay"

# Header carrying the shared secret from the tool server to the gateway
SECRET_HEADER = "X-Webhook-Secret"


class Settings(BaseSettings):
    """Settings loaded once from environment variables (or a .env file)."""

    # ClickUp
    clickup_api_token: str = ""
    clickup_default_list_id: str = ""
    clickup_api_base_url: str = "https://api.clickup.com/api/v2"

    # Shared secrets
    pd_shared_secret: str = ""
    clickup_shared_secret: str = ""

    # Tool server -> gateway
    clickup_worker_url: str = "http://127.0.0.1:8787"

    # None disables the timeout on outbound calls
    upstream_timeout: float | None = None

    # Goal storage
    goals_db_path: str = str(DEFAULT_DATA_DIR / "goals.db")

    # Scheduler (crontab expression, UTC). APScheduler 3 counts weekday
    # numbers from Monday = 0, so use names like "mon".
    weekly_task_cron: str = "0 9 * * mon"
    scheduler_enabled: bool = True

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8787
    expose_request_id: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def worker_secret(self) -> str:
        """Secret the tool server presents to the gateway."""
        return self.clickup_shared_secret or self.pd_shared_secret
