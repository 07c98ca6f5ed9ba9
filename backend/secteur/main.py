import logging
import sys
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from secteur.api.router import api_router
from secteur.config import settings


def _setup_logging() -> None:
    """Configure la journalisation de l'application."""
    log_format = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
    date_format = "%H:%M:%S"
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        stream=sys.stderr,
        force=True,
    )

    # Bibliothèques externes : WARNING et plus, détail pour l'application seulement
    logging.getLogger().setLevel(logging.WARNING)
    logging.getLogger("secteur").setLevel(level)

    # httpx trace chaque requête en INFO, une par relais
    logging.getLogger("httpx").setLevel(logging.WARNING)


_setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: client HTTP partagé par toutes les analyses
    app.state.http_client = httpx.AsyncClient(follow_redirects=True)
    yield
    # Shutdown
    await app.state.http_client.aclose()


app = FastAPI(
    title="Analyse de secteur immobilier",
    description="Transactions DVF, statistiques de prix au m², estimations et données logement d'une commune française.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


def run() -> None:
    uvicorn.run("secteur.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
