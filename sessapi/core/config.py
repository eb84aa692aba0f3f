# sessapi/core/config.py
from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === App Info ===
    APP_NAME: str = "Session API"
    API_V1_PREFIX: str = "/api/v1"
    ENV: str = os.getenv("ENV", "dev")
    # debug=True 會讓 Starlette 回傳 traceback 頁面，只在 dev 才生效
    DEBUG: bool = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")

    # === CORS ===
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("CORS_ORIGINS", "PASSWORD_SCHEMES", mode="before")
    @classmethod
    def _parse_list(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                import json
                return [x.strip() for x in json.loads(s)]
            return [x.strip() for x in s.split(",") if x.strip()]
        return v

    # === Database ===
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./sessapi.db")
    DB_ECHO: bool = os.getenv("DB_ECHO", "false").lower() == "true"
    # 啟動時自動 create_all（本專案不含 migration 工具）
    DB_AUTO_CREATE: bool = True

    # === Password hashing ===
    # 第一個 scheme 用於新雜湊；其餘僅用於驗證舊雜湊
    PASSWORD_SCHEMES: List[str] = ["bcrypt"]
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # === Field policy ===
    PASSWORD_MIN_LENGTH: int = 1
    PASSWORD_MAX_LENGTH: int = 1024
    EMAIL_MAX_LENGTH: int = 255

    # === Session cookies ===
    SESSION_COOKIE_ID: str = "sid"
    SESSION_COOKIE_TOKEN: str = "stok"
    # cookie 壽命，同時也是伺服器端 session 壽命；0 = 伺服器端不過期
    SESSION_MAX_AGE_SECONDS: int = int(os.getenv("SESSION_MAX_AGE_SECONDS", str(60 * 60 * 24 * 365)))
    COOKIE_SECURE: bool = os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")
    COOKIE_SAMESITE: str = "lax"

    # === Scheduler ===
    SESSION_CLEANUP_INTERVAL_MINUTES: int = 60

    # === Observability（Sentry / Monitoring） ===
    SENTRY_DSN: Optional[str] = os.getenv("SENTRY_DSN")
    SENTRY_ENV: str = os.getenv("SENTRY_ENV", "dev")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """測試環境自動改用本機 SQLite"""
    s = Settings()
    if s.ENV == "test":
        if "DATABASE_URL" not in os.environ:
            s.DATABASE_URL = "sqlite+aiosqlite:///./test.db"
    return s


settings = get_settings()
