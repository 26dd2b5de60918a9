"""
Application configuration
Read from environment variables / .env
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Resort PMS"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./resort_pms.db"

    # Bearer tokens issued by the external auth service
    SECRET_KEY: str = "resort-pms-secret-change-in-production"
    ALGORITHM: str = "HS256"

    # Front desk
    DEFAULT_CHECK_IN_TIME: str = "14:00"
    DEFAULT_CHECK_OUT_TIME: str = "12:00"

    # Upper bound on waiting for the per-room booking creation lock
    BOOKING_LOCK_TIMEOUT_SECONDS: float = 10.0

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
