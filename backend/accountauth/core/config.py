"""Application configuration loaded from environment variables."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from accountauth.core.security import SessionConfig

BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    APP_NAME: str = "Account Auth"
    ENV: str = "development"

    DATABASE_URL: str = "postgresql+psycopg://postgres@localhost:5432/accountauth"

    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30
    LOG_LEVEL: str = "INFO"

    ONE_TIME_TOKEN_EXPIRE_MINUTES: int = 10
    ONE_TIME_TOKEN_DIGITS: int = 6

    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_TLS: bool = True

    FRONTEND_BASE_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def one_time_token_ttl(self) -> dt.timedelta:
        return dt.timedelta(minutes=self.ONE_TIME_TOKEN_EXPIRE_MINUTES)

    def session_config(self) -> SessionConfig:
        return SessionConfig(
            secret=self.JWT_SECRET,
            ttl=dt.timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES),
            algorithm=self.JWT_ALGORITHM,
        )

    def validate_runtime_security(self) -> None:
        if self.ENV.lower() == "development":
            return
        if not self.JWT_SECRET or self.JWT_SECRET == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set outside development")


settings = Settings()
