"""Lancement et consultation des analyses de secteur."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, WebSocket
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from secteur.api.deps import get_http_client
from secteur.api.websocket.manager import manager
from secteur.errors import CommuneNotFound
from secteur.pipeline.graph import complete_analysis, run_analysis
from secteur.pipeline.nodes.export import export_filename, project_export
from secteur.pipeline.nodes.statistics import recent_transactions
from secteur.pipeline.state import AnalysisSession, SessionRegistry
from secteur.pipeline.tools.html_sources import source_links
from secteur.schemas.analysis import CategoryName

logger = logging.getLogger(__name__)

router = APIRouter()

# Une seule analyse « courante » : une nouvelle requête remplace la précédente
registry = SessionRegistry()

LATE_CATEGORIES = (CategoryName.PRICE_ESTIMATE, CategoryName.DEMOGRAPHICS)


class AnalysisRequest(BaseModel):
    query: str | None = None
    code: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _session_payload(session: AnalysisSession) -> dict[str, Any]:
    payload = jsonable_encoder(session)
    payload["recent_transactions"] = jsonable_encoder(recent_transactions(session.transaction_list))
    payload["links"] = jsonable_encoder(source_links(session.commune))
    return payload


def _current_or_404(analysis_id: str) -> AnalysisSession:
    session = registry.get(analysis_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Analyse introuvable ou remplacée.")
    return session


def category_update(category: CategoryName, session: AnalysisSession) -> dict[str, Any]:
    outcome = getattr(session, category.value)
    return {
        "type": "category_update",
        "category": category.value,
        "state": outcome.state.value,
        "data": jsonable_encoder(outcome.data),
    }


async def _push_update(category: CategoryName, session: AnalysisSession) -> None:
    if not manager.watchers(session.id):
        return
    delivered = await manager.broadcast(session.id, category_update(category, session))
    logger.debug("category_update %s: session=%s, %d client(s)", category.value, session.id, delivered)


async def replay_settled(session_id: str, websocket: WebSocket) -> int:
    """Envoie à un nouvel abonné les catégories tardives déjà réglées.

    L'analyse tourne en tâche de fond dès la réponse du POST : une catégorie
    peut se régler avant l'ouverture du WebSocket. Un doublon avec un envoi
    concurrent est sans effet, l'état d'une catégorie réglée ne change plus.
    """
    session = registry.get(session_id)
    if session is None:
        return 0

    sent = 0
    for category in LATE_CATEGORIES:
        if getattr(session, category.value).is_pending:
            continue
        await websocket.send_json(category_update(category, session))
        sent += 1
    return sent


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", status_code=201)
async def create_analysis(
    body: AnalysisRequest,
    background_tasks: BackgroundTasks,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict:
    """Analyse une commune (par code INSEE ou par nom).

    Renvoie le résultat principal (transactions + statistiques) ; estimations
    et données logement arrivent ensuite via WebSocket.
    """
    try:
        run = await run_analysis(client, query=body.query, code=body.code, registry=registry)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CommuneNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    background_tasks.add_task(complete_analysis, run, registry, _push_update)

    logger.debug("analyse créée: %s (%s)", run.session.id, run.session.commune.name)
    return _session_payload(run.session)


@router.get("/{analysis_id}")
async def get_analysis(analysis_id: str) -> dict:
    """Session d'analyse courante, catégories tardives comprises."""
    return _session_payload(_current_or_404(analysis_id))


@router.get("/{analysis_id}/export")
async def get_analysis_export(analysis_id: str) -> dict:
    """Tables plates prêtes pour l'écriture d'un classeur."""
    session = _current_or_404(analysis_id)
    return {
        "filename": export_filename(session.commune),
        "tables": jsonable_encoder(project_export(session)),
    }
