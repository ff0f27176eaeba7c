from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Transit Booking System"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Storage
    STORAGE_BACKEND: str = "memory"  # memory | file | database
    DATA_DIR: str = "data"
    DATABASE_URL: str = "sqlite:///./transit_booking.db"
    STORAGE_RETRY_ATTEMPTS: int = 3
    STORAGE_RETRY_DELAY_SECONDS: float = 0.1
    STORAGE_TIMEOUT_SECONDS: float = 5.0
    LOCK_TIMEOUT_SECONDS: Optional[float] = 10.0

    # Pricing (currency units)
    PRICE_BUS: int = 20
    PRICE_FIRST_CLASS: int = 50
    PRICE_SECOND_CLASS: int = 15
    SERVICE_FEE_PERCENTAGE: int = 10

    # Security
    PASSWORD_HASH_SCHEME: str = "pbkdf2_sha256"


    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
