from fastapi import APIRouter

from secteur.config import settings

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "env": settings.app_env}
