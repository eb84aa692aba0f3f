# sessapi/api/v1/endpoints/pages.py
"""
頁面分派器（每個請求都是一個新的狀態機）：

  1. method 只接受 GET / POST            → 否則 405
  2. 頁面必須存在且回應型別是 JSON         → 否則 404
  3. 用 cookie (sid, stok) resolve session → Authenticated / Unauthenticated
  4. login 以外的頁面都需要登入            → 否則 403
  5. 執行頁面
"""
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from sessapi.core.deps import RequestContext, build_context
from sessapi.core.errors import (
    AuthFailure,
    ConflictError,
    Forbidden,
    MethodNotAllowed,
    NotFound,
    ValidationFailed,
)
from sessapi.db.session import get_db
from sessapi.schemas.forms import EmailForm, LoginForm, PasswordForm
from sessapi.schemas.user import UserEnvelope, UserRead
from sessapi.services import credentials, session_manager
from sessapi.services.authenticator import authenticate

router = APIRouter()

JSON_MIME = "application/json"
ALLOWED_METHODS = ("GET", "POST")
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

PAGE_INDEX = "index"
PAGE_LOGIN = "login"
PAGE_LOGOUT = "logout"
PAGE_USER_MOD_EMAIL = "usermodemail"
PAGE_USER_MOD_PASS = "usermodpass"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

PageHandler = Callable[[RequestContext], Awaitable[Response]]


def _json_user(user: UserRead, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=UserEnvelope(user=user).model_dump())


def _empty(status_code: int = 200) -> Response:
    return Response(status_code=status_code, media_type=JSON_MIME)


def _set_session_cookies(resp: Response, ctx: RequestContext, sid: int, token: int) -> None:
    cfg = ctx.settings
    for key, value in ((cfg.SESSION_COOKIE_TOKEN, token), (cfg.SESSION_COOKIE_ID, sid)):
        resp.set_cookie(
            key,
            str(value),
            expires=cfg.SESSION_MAX_AGE_SECONDS or None,
            path="/",
            secure=cfg.COOKIE_SECURE,
            httponly=True,
            samesite=cfg.COOKIE_SAMESITE,
        )


def _clear_session_cookies(resp: Response, ctx: RequestContext) -> None:
    cfg = ctx.settings
    for key in (cfg.SESSION_COOKIE_TOKEN, cfg.SESSION_COOKIE_ID):
        # 空值 + expires 設在 epoch（過去的時間）
        resp.set_cookie(
            key,
            "",
            max_age=0,
            expires=EPOCH,
            path="/",
            secure=cfg.COOKIE_SECURE,
            httponly=True,
            samesite=cfg.COOKIE_SAMESITE,
        )


# === 頁面 ===
async def send_index(ctx: RequestContext) -> Response:
    return _json_user(ctx.user)


async def send_login(ctx: RequestContext) -> Response:
    form = LoginForm.from_fields(ctx.fields)
    if form is None:
        raise ValidationFailed()

    user = await authenticate(ctx.db, form.email, form.password)
    if user is None:
        logger.info("{}: login failed", form.email)
        raise AuthFailure()

    # 已登入時再登入 → 只是多一個 session
    sid, token = await session_manager.create(ctx.db, user)
    logger.info("{}: new session", user.email)

    resp = _json_user(user)
    _set_session_cookies(resp, ctx, sid, token)
    return resp


async def send_logout(ctx: RequestContext) -> Response:
    await session_manager.revoke(ctx.db, ctx.user, ctx.session_id, ctx.session_token)
    logger.info("{}: session deleted", ctx.user.email)

    resp = _empty()
    _clear_session_cookies(resp, ctx)
    return resp


async def send_mod_email(ctx: RequestContext) -> Response:
    form = EmailForm.from_fields(ctx.fields)
    if form is None:
        raise ValidationFailed()

    if not await credentials.change_email(ctx.db, ctx.user, form.email):
        logger.info("{}: email change conflict: {}", ctx.user.email, form.email)
        raise ConflictError()

    logger.info("{}: changed email: {}", ctx.user.email, form.email)
    return _empty()


async def send_mod_pass(ctx: RequestContext) -> Response:
    form = PasswordForm.from_fields(ctx.fields)
    if form is None:
        raise ValidationFailed()

    await credentials.change_password(ctx.db, ctx.user, form.password)
    logger.info("{}: changed password", ctx.user.email)
    return _empty()


PAGES: Dict[str, PageHandler] = {
    PAGE_INDEX: send_index,
    PAGE_LOGIN: send_login,
    PAGE_LOGOUT: send_logout,
    PAGE_USER_MOD_EMAIL: send_mod_email,
    PAGE_USER_MOD_PASS: send_mod_pass,
}


def split_page(raw: str) -> Tuple[str, Optional[str]]:
    """'login.json' → ('login', 'json')；沒有副檔名時 suffix 為 None。"""
    name, dot, suffix = raw.rpartition(".")
    if not dot:
        return raw, None
    return name, suffix.lower()


def wants_json(suffix: Optional[str], accept: str) -> bool:
    if suffix is not None:
        return suffix == "json"
    return JSON_MIME in (accept or "").lower()


@router.api_route("/{page:path}", methods=ALL_METHODS, include_in_schema=False)
async def dispatch(page: str, request: Request, db: AsyncSession = Depends(get_db)):
    if request.method not in ALLOWED_METHODS:
        raise MethodNotAllowed()

    name, suffix = split_page(page)
    # 沒指定頁面時預設 index；多層路徑一律視為不存在
    name = name or PAGE_INDEX
    handler = None if "/" in name else PAGES.get(name)
    if handler is None or not wants_json(suffix, request.headers.get("accept", "")):
        raise NotFound()

    ctx = await build_context(request, db)
    if name != PAGE_LOGIN and not ctx.authenticated:
        logger.info("forbidden: {} without session", name)
        raise Forbidden()

    return await handler(ctx)
