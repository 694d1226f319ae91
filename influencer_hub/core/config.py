# influencer_hub/core/config.py
import os
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
DOTENV = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env")

PLACEHOLDER_SECRETS = {
    "your-super-secret-jwt-key-change-in-production",
    "dev_secret_change_me",
    "changeme",
}


class Settings(BaseSettings):
    APP_NAME: str = "Influencer Hub"
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = Field(min_length=32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    PASSWORD_HASH_ROUNDS: int = 10
    DATABASE_URL: str

    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 5
    OTP_RESEND_COOLDOWN_SECONDS: int = 30
    SIGNUP_REQUIRES_VERIFIED_EMAIL: bool = True

    DEFAULT_COUNTRY_CODE: str = "91"

    SMTP_SERVER: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: Optional[str] = None

    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1"]
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=DOTENV,
        env_ignore_empty=True,
        extra="ignore"
    )

    @field_validator("SECRET_KEY")
    @classmethod
    def reject_placeholder_secret(cls, value: str) -> str:
        if value.strip().lower() in PLACEHOLDER_SECRETS:
            raise ValueError("SECRET_KEY is set to a publicly known placeholder value")
        return value

    @field_validator("DEFAULT_COUNTRY_CODE")
    @classmethod
    def validate_country_code(cls, value: str) -> str:
        value = value.lstrip("+")
        if not value.isdigit():
            raise ValueError("DEFAULT_COUNTRY_CODE must contain digits only")
        return value

    @property
    def mail_sender(self) -> str:
        return self.EMAIL_FROM or self.SMTP_USER


settings = Settings()
