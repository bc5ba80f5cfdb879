# otpauth/core/config.py
import os
from datetime import timedelta
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from functools import lru_cache

# Placeholder that is never accepted as a real signing key
UNCONFIGURED_SECRET = "change-me-in-prod"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True)

    # Application Settings
    APP_NAME: str = "OTP Auth API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./otpauth.db")

    # Security Settings
    SECRET_KEY: str = Field(default=UNCONFIGURED_SECRET, alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"

    # OTP Settings
    OTP_TTL_SECONDS: int = 72 * 60 * 60  # 72 hours
    AUTH_PREFIX: str = "/auth"

    # Twilio Settings
    TWILIO_ACCOUNT_SID: str = os.environ.get("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.environ.get("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER: str = os.environ.get("TWILIO_PHONE_NUMBER", "")
    SMS_MESSAGE_TEMPLATE: str = "Your verification code is {code}"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def otp_ttl(self) -> timedelta:
        return timedelta(seconds=self.OTP_TTL_SECONDS)

    @property
    def twilio_configured(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_PHONE_NUMBER)

    @property
    def secret_configured(self) -> bool:
        return bool(self.SECRET_KEY) and self.SECRET_KEY != UNCONFIGURED_SECRET


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings: Settings = get_settings()
