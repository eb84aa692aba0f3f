# sessapi/core/errors.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException


class DispatchError(Exception):
    """頁面分派層的錯誤；只帶狀態碼，不帶任何內部細節給前端。"""
    status_code: int = 500


class ValidationFailed(DispatchError):
    status_code = 400


class AuthFailure(DispatchError):
    # 登入失敗（不區分「無此帳號」與「密碼錯誤」）
    status_code = 400


class ConflictError(DispatchError):
    status_code = 400


class Forbidden(DispatchError):
    status_code = 403


class NotFound(DispatchError):
    status_code = 404


class MethodNotAllowed(DispatchError):
    status_code = 405


class StoreError(DispatchError):
    status_code = 500


NOT_FOUND_BODY = "Page not found."


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DispatchError)
    async def dispatch_exc_handler(request: Request, exc: DispatchError):
        # 只有 404 有固定文字 body，其餘一律空 body
        if isinstance(exc, NotFound):
            return PlainTextResponse(NOT_FOUND_BODY, status_code=exc.status_code)
        return Response(status_code=exc.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def store_exc_handler(request: Request, exc: SQLAlchemyError):
        logger.opt(exception=exc).error("store failure on {}", request.url.path)
        return Response(status_code=StoreError.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        # 統一輸出格式
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"detail": "Validation error"})

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        try:
            resp = await call_next(request)
        except Exception as exc:
            # 其他未預期錯誤：只記 log，對外一律空 body 的 500（不回 traceback）
            logger.opt(exception=exc).error("unhandled error on {}", request.url.path)
            resp = Response(status_code=StoreError.status_code)
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["X-XSS-Protection"] = "1; mode=block"
        return resp
