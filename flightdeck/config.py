"""
Application Configuration — Pydantic Settings

Process-level settings loaded from environment variables / .env.
The InfluxDB endpoint and admin token are NOT here: they live in the
JSON config document managed by ConfigStore so the dashboard can edit them.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Priority: Environment variables > .env file > defaults
    """

    # === API Configuration ===
    PROJECT_NAME: str = "Flightdeck"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # === CORS Configuration ===
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # === Config Document ===
    CONFIG_FILE_PATH: str = "config.json"

    # === InfluxDB 3 ===
    INFLUX_CLI_PATH: str = "influxdb3"
    INFLUX_DATA_PATH: Optional[str] = None  # fallback when config has no dataPath
    HTTP_TIMEOUT_SECONDS: float = 10.0
    CLI_TIMEOUT_SECONDS: float = 30.0
    RESERVED_BUCKET: str = "_internal"

    # === Background Pollers ===
    MONITOR_INTERVAL_SECONDS: float = 10.0
    MONITOR_AUTOSTART: bool = True
    BUCKET_WATCH_ENABLED: bool = False
    BUCKET_POLL_SECONDS: float = 5.0

    # === Environment ===
    ENVIRONMENT: str = "local"  # local, development, production

    # === Settings Configuration ===
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Singleton instance
settings = Settings()
