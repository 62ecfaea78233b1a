"""Configuration management using pydantic-settings."""
from pydantic_settings import BaseSettings

# SportScore identifies tennis with sport id 2
TENNIS_SPORT_ID = 2

# RapidAPI host for SportScore, not configurable
SPORTSCORE_HOST = "sportscore1.p.rapidapi.com"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8765
    log_level: str = "INFO"

    # SportScore (RapidAPI) configuration
    rapidapi_key: str = ""
    tennis_sport_id: int = TENNIS_SPORT_ID
    request_timeout_seconds: int = 30

    # Client credentials (insecure defaults when unconfigured)
    auth_username: str = "admin"
    auth_password: str = "password"

    # Polling
    poll_interval_seconds: float = 5.0
    # Consecutive failed ticks before subscribers are told; 0 disables
    poll_failure_alert_threshold: int = 3

    @property
    def api_base_url(self) -> str:
        return f"https://{SPORTSCORE_HOST}"

    @property
    def websocket_url(self) -> str:
        host = "localhost" if self.host in ("0.0.0.0", "") else self.host
        return f"ws://{host}:{self.port}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
