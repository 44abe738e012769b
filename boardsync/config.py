"""Application configuration"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    database_url: str = "sqlite:///./boardsync.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Sync
    sync_interval_minutes: int = 10
    scheduler_enabled: bool = True
    # Where the global "last successful sync" cursor lives: "database" or "file".
    cursor_backend: str = "database"
    cursor_file: str = "last_update.txt"
    # Card names match when they contain "#<id>" anywhere. Turn on to require a
    # token boundary after the id, so issue 7 no longer matches "#70 ...".
    strict_id_match: bool = False
    # When false, a run with any failed record keeps the previous cursor.
    advance_cursor_on_partial_failure: bool = False
    http_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"

    # Auth (optional)
    # When enabled, all API routes are protected by HTTP Basic auth,
    # except for /health.
    auth_enabled: bool = False
    auth_username: str | None = None
    auth_password: str | None = None

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
