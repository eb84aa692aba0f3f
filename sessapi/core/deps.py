# sessapi/core/deps.py
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from sessapi.core.config import Settings, get_settings, settings
from sessapi.schemas.user import UserRead
from sessapi.services import session_manager

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


@dataclass
class RequestContext:
    """
    單一請求的狀態：store handle、解析出的使用者、欄位、cookie。
    每個請求都重新建立，請求之間不共享任何東西。
    """
    db: AsyncSession
    fields: Dict[str, Any] = field(default_factory=dict)
    session_id: Optional[int] = None
    session_token: Optional[int] = None
    user: Optional[UserRead] = None
    settings: Settings = field(default_factory=get_settings)

    @property
    def authenticated(self) -> bool:
        return self.user is not None


def parse_session_id(raw: Optional[str]) -> Optional[int]:
    """sid：有號整數；格式不對就當作沒帶。"""
    if raw is None:
        return None
    try:
        value = int(raw.strip(), 10)
    except ValueError:
        return None
    # 超出 BIGINT 範圍的值不可能吻合任何一列
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def parse_session_token(raw: Optional[str]) -> Optional[int]:
    """stok：非負整數；格式不對就當作沒帶。"""
    value = parse_session_id(raw)
    if value is None or value < 0:
        return None
    return value


async def read_fields(request: Request) -> Dict[str, Any]:
    """query string + 表單 body（表單優先），只保留字串欄位。"""
    fields: Dict[str, Any] = dict(request.query_params)
    ctype = request.headers.get("content-type", "")
    if request.method == "POST" and (
        ctype.startswith("application/x-www-form-urlencoded")
        or ctype.startswith("multipart/form-data")
    ):
        try:
            form = await request.form()
        except (StarletteHTTPException, MultiPartException):
            # 表單格式壞掉 → 當作沒有表單欄位（之後由頁面回 400）
            return fields
        for key, value in form.items():
            if isinstance(value, str):
                fields[key] = value
    return fields


async def build_context(request: Request, db: AsyncSession) -> RequestContext:
    """解析 cookie → resolve session；找不到就是未登入狀態。"""
    sid = parse_session_id(request.cookies.get(settings.SESSION_COOKIE_ID))
    stok = parse_session_token(request.cookies.get(settings.SESSION_COOKIE_TOKEN))
    ctx = RequestContext(
        db=db,
        fields=await read_fields(request),
        session_id=sid,
        session_token=stok,
    )
    ctx.user = await session_manager.resolve(db, sid, stok)
    return ctx
