# sessapi/services/credentials.py
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from sessapi.core.security import hash_password
from sessapi.models.users import User
from sessapi.schemas.user import UserRead


async def create_user(db: AsyncSession, email: str, password: str) -> Optional[UserRead]:
    """建立使用者（雜湊密碼）；email 已被使用時回傳 None。"""
    user = User(email=email, password_hash=await run_in_threadpool(hash_password, password))
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return None
    await db.refresh(user)
    return UserRead.model_validate(user)


async def change_email(db: AsyncSession, user: UserRead, new_email: str) -> bool:
    """
    更新 email。與其他使用者衝突（unique constraint）時回傳 False，
    原本的 email 不變。不重新驗證密碼。
    """
    try:
        await db.execute(update(User).where(User.id == user.id).values(email=new_email))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False
    return True


async def change_password(db: AsyncSession, user: UserRead, new_password: str) -> None:
    # 注意：不會讓其他既有 session 失效
    password_hash = await run_in_threadpool(hash_password, new_password)
    await db.execute(
        update(User).where(User.id == user.id).values(password_hash=password_hash)
    )
    await db.commit()
