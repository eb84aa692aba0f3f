# sessapi/main.py
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from sessapi.core.config import settings
from sessapi.core.logging import setup_logging
from sessapi.core.errors import register_error_handlers
from sessapi.core.security import get_password_context, probe_password_context
from sessapi.api.v1.router import api_router
from sessapi.db.session import get_db
from sessapi.services.scheduler import lifespan_scheduler  # lifespan（建表 + 排程）

# Monitoring
import sentry_sdk
from prometheus_fastapi_instrumentator import Instrumentator

logger = setup_logging()


def _validate_password_hashing() -> None:
    """
    部署前檢查：沒有安全的密碼雜湊就拒絕啟動（絕不退回明文比對）。
    """
    probe_password_context(get_password_context())


def _validate_cookies() -> None:
    env = (settings.ENV or "").lower()
    if env in {"prod", "production", "staging"} and not settings.COOKIE_SECURE:
        raise RuntimeError(
            f"COOKIE_SECURE must be enabled in ENV={settings.ENV} (session cookies over TLS only)."
        )


def create_app() -> FastAPI:
    # 基本安全檢查
    _validate_password_hashing()
    _validate_cookies()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG and (settings.ENV or "").lower() == "dev",
        lifespan=lifespan_scheduler,
    )

    # CORS（cookie 需要 allow_credentials）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # ---- Sentry 初始化（若 .env/SENTRY_DSN 未設定就略過）----
    sentry_dsn = settings.SENTRY_DSN or os.getenv("SENTRY_DSN")
    if sentry_dsn:
        sentry_sdk.init(
            dsn=sentry_dsn,
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
            environment=settings.SENTRY_ENV or settings.ENV,
        )

    # ---- Prometheus /metrics ----
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    # 統一錯誤處理
    register_error_handlers(app)

    # === 健康檢查（root & ops）===
    @app.get("/healthz", tags=["ops"])
    async def healthz():
        return {"ok": True}

    @app.get("/readyz", tags=["ops"])
    async def readyz(db: AsyncSession = Depends(get_db)):
        await db.execute(text("SELECT 1"))
        return {"ready": True}

    # === API 路由 ===
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    logger.info("Application initialized (env={})", settings.ENV)
    return app


# Uvicorn 進入點
app = create_app()
