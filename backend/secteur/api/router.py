from fastapi import APIRouter

from secteur.api.v1 import analyses, communes, health
from secteur.api.websocket import analyses as ws_analyses

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(communes.router, prefix="/communes", tags=["communes"])
api_router.include_router(analyses.router, prefix="/analyses", tags=["analyses"])
api_router.include_router(ws_analyses.router, tags=["websocket"])
