from fastapi import APIRouter

from sessapi.core.config import settings

router = APIRouter()

@router.get("/", summary="Health check")
async def health_root():
    return {"status": "ok", "app": settings.APP_NAME, "env": settings.ENV}
