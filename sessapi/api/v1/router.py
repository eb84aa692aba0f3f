# sessapi/api/v1/router.py
from fastapi import APIRouter

from .endpoints import health, pages

# === API v1 主路由 ===
api_router = APIRouter()

# 系統健康檢查（需放在頁面分派之前，避免被 /{page} 吃掉）
api_router.include_router(health.router, prefix="/health", tags=["health"])

# index / login / logout / usermodemail / usermodpass
api_router.include_router(pages.router, tags=["pages"])
