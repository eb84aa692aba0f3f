# sessapi/services/scheduler.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from loguru import logger

from sessapi.core.config import settings
from sessapi.db.session import AsyncSessionLocal, init_models
from sessapi.services.session_manager import purge_expired

scheduler: Optional[AsyncIOScheduler] = None


@asynccontextmanager
async def lifespan_scheduler(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan：建表（可選）、啟動 / 關閉 APScheduler。
    """
    global scheduler
    if settings.DB_AUTO_CREATE:
        await init_models()

    scheduler = AsyncIOScheduler(timezone="UTC")
    if settings.SESSION_MAX_AGE_SECONDS > 0:
        minutes = settings.SESSION_CLEANUP_INTERVAL_MINUTES
        scheduler.add_job(run_cleanup_job, IntervalTrigger(minutes=minutes))
        logger.info("APScheduler: expired session cleanup every {} minutes", minutes)
    scheduler.start()
    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)
            logger.info("APScheduler shutdown")


async def run_cleanup_job() -> int:
    """排程作業：建立一次性 DB session 來清理過期 session。"""
    async with AsyncSessionLocal() as db:
        try:
            deleted = await purge_expired(db)
        except Exception:
            logger.exception("Session cleanup failed")
            await db.rollback()
            return 0
    logger.info("Session cleanup done: {} deleted", deleted)
    return deleted
