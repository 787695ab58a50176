from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False
    cors_origins: list[str] = []
    tick_interval: float = 1.0  # Seconds between active timer broadcasts
    session_ttl_days: int = 7  # Sessions are rejected once older than this

    model_config = {
        "env_file": [".env"],
        "env_prefix": "TIMERSYNC_",
        "extra": "ignore",
    }
