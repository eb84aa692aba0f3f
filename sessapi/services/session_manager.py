# sessapi/services/session_manager.py
"""
Session 生命週期：create / resolve / revoke / purge_expired。

每個操作都是單一 SQL 敘述（point insert / join select / delete by key），
不需要額外的交易或鎖。
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from sessapi.core.config import settings
from sessapi.core.security import new_session_token
from sessapi.models.sessions import Session
from sessapi.models.users import User
from sessapi.schemas.user import UserRead


def _now_utc() -> datetime:
    # DB 存 naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _expiry_cutoff(max_age: Optional[int] = None) -> Optional[datetime]:
    seconds = settings.SESSION_MAX_AGE_SECONDS if max_age is None else max_age
    if seconds <= 0:
        return None
    return _now_utc() - timedelta(seconds=seconds)


async def create(db: AsyncSession, user: UserRead) -> Tuple[int, int]:
    """建立新 session，回傳 (session_id, token)。"""
    sess = Session(token=new_session_token(), user_id=user.id, created_at=_now_utc())
    db.add(sess)
    await db.commit()
    return sess.id, sess.token


async def resolve(
    db: AsyncSession,
    session_id: Optional[int],
    token: Optional[int],
) -> Optional[UserRead]:
    """
    (id, token) 必須同時吻合同一列才算有效。
    任一值缺少時直接回 None，不碰資料庫。
    """
    if session_id is None or token is None:
        return None

    stmt = (
        select(User.id, User.email)
        .join(Session, Session.user_id == User.id)
        .where(Session.id == session_id, Session.token == token)
    )
    cutoff = _expiry_cutoff()
    if cutoff is not None:
        stmt = stmt.where(Session.created_at >= cutoff)

    row = (await db.execute(stmt)).first()
    if row is None:
        return None
    return UserRead(id=row.id, email=row.email)


async def revoke(db: AsyncSession, user: UserRead, session_id: int, token: int) -> bool:
    """
    刪除 (id, token, user_id) 三者都吻合的 session。
    沒有吻合的列時是 no-op；回傳是否真的刪到。
    """
    result = await db.execute(
        delete(Session).where(
            Session.id == session_id,
            Session.token == token,
            Session.user_id == user.id,
        )
    )
    await db.commit()
    return bool(result.rowcount)


async def purge_expired(db: AsyncSession, max_age: Optional[int] = None) -> int:
    """刪除超過壽命的 session，回傳刪除數量。"""
    cutoff = _expiry_cutoff(max_age)
    if cutoff is None:
        return 0
    res = await db.execute(delete(Session).where(Session.created_at < cutoff))
    await db.commit()
    return res.rowcount or 0
