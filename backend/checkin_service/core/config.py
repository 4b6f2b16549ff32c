from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "RFID Check-in Service"
    VERSION: str = "1.0.0"
    API_PREFIX: str = ""
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None  # e.g. "app.log" for a rotating file

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./checkin.db"
    STORE_BACKEND: str = "sql"  # "sql" or "memory"
    CREATE_TABLES: bool = True

    # Card reader bridge
    BRIDGE_ENABLED: bool = False
    BRIDGE_PORT: str = "/dev/ttyUSB0"
    BRIDGE_BAUDRATE: int = 115200
    BRIDGE_READ_TIMEOUT: float = 0.25  # seconds, readline() returns b'' on timeout
    BRIDGE_BACKOFF_INITIAL: float = 0.2
    BRIDGE_BACKOFF_MAX: float = 5.0
    BRIDGE_MAX_RETRIES: int = 0  # 0 retries forever
    BRIDGE_DEDUP_WINDOW_SECONDS: float = 3.0

    # Certificates
    CERTIFICATE_PLACEHOLDER: str = "PDF_PLACEHOLDER"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

settings = Settings()
