# sessapi/db/session.py
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from sessapi.core.config import settings
from sessapi.models.base import Base

# ---- Engine ----
DATABASE_URL = settings.DATABASE_URL or "sqlite+aiosqlite:///./sessapi.db"
echo_flag = str(getattr(settings, "DB_ECHO", "false")).lower() in {"1", "true", "yes"}


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: str) -> AsyncEngine:
    if _is_sqlite(url):
        # SQLite：每次請求開新連線（不跨 event loop 共用），並強制外鍵
        eng = create_async_engine(url, echo=echo_flag, poolclass=NullPool, future=True)

        @event.listens_for(eng.sync_engine, "connect")
        def _sqlite_foreign_keys(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return eng

    # pool_pre_ping 讓連線池自我檢查
    return create_async_engine(url, echo=echo_flag, pool_pre_ping=True, future=True)


engine = build_engine(DATABASE_URL)

# ---- Session factory ----
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---- Dependency ----
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 依賴：每個請求一個 AsyncSession（store handle），完成後關閉。
    """
    session: AsyncSession = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()


async def init_models(bind: AsyncEngine = engine) -> None:
    # 確保模型已註冊到 metadata
    from sessapi.models import sessions, users  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_models(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
