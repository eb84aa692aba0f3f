# sessapi/services/authenticator.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from sessapi.core.security import verify_password
from sessapi.models.users import User
from sessapi.schemas.user import UserRead


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[UserRead]:
    """
    以 email / 密碼驗證使用者。
    失敗一律回傳 None（不區分「無此帳號」與「密碼錯誤」）；唯讀、不寫 log。
    無此帳號時仍做一次雜湊運算，回應時間與密碼錯誤相同。
    """
    if not email or not password:
        return None

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    password_hash = user.password_hash if user is not None else None

    # bcrypt 是 CPU 密集工作，丟到 threadpool，不卡住 event loop
    ok = await run_in_threadpool(verify_password, password, password_hash)
    if user is None or not ok:
        return None
    return UserRead.model_validate(user)
