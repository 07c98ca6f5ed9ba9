"""Orchestration d'une analyse de secteur

résolution commune → [estimations | logement] (tâches indépendantes)
                   → transactions DVF (repli séquentiel) → statistiques

Les deux catégories optionnelles démarrent dès la résolution de la commune et
sont fusionnées plus tard dans la session, sans jamais bloquer le résultat
principal.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from secteur.errors import SessionSuperseded
from secteur.pipeline.nodes.estimates import demographics_node, price_estimate_node
from secteur.pipeline.nodes.statistics import compute_stats
from secteur.pipeline.nodes.transactions import transactions_node
from secteur.pipeline.state import AnalysisSession, SessionRegistry
from secteur.pipeline.tools.geo_api import resolve_by_code, resolve_by_name
from secteur.schemas.analysis import CategoryName, CategoryOutcome
from secteur.schemas.commune import Commune

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[CategoryName, AnalysisSession], Awaitable[None]]


@dataclass
class AnalysisRun:
    """Résultat principal + tâches des catégories tardives encore en cours"""

    session: AnalysisSession
    pending: dict[CategoryName, asyncio.Task[CategoryOutcome[Any]]] = field(default_factory=dict)


async def resolve_commune(
    client: httpx.AsyncClient,
    query: str | None = None,
    code: str | None = None,
) -> Commune:
    """Par code INSEE si fourni, sinon par nom. Lève ``CommuneNotFound``."""
    if code:
        return await resolve_by_code(client, code)
    if query is None or not query.strip():
        raise ValueError("Veuillez entrer le nom d'une commune")
    return await resolve_by_name(client, query)


def _commit(
    registry: SessionRegistry | None,
    session: AnalysisSession,
    **changes: Any,
) -> tuple[AnalysisSession, bool]:
    """Applique les changements localement et, si possible, dans le registre.

    Le booléen vaut False quand la session a été remplacée entre-temps.
    """
    updated = replace(session, **changes)
    if registry is None:
        return updated, True
    try:
        return registry.merge(session.id, **changes), True
    except SessionSuperseded:
        logger.info("session %s remplacée, fusion ignorée (%s)", session.id, ", ".join(changes))
        return updated, False


async def run_analysis(
    client: httpx.AsyncClient,
    *,
    query: str | None = None,
    code: str | None = None,
    registry: SessionRegistry | None = None,
) -> AnalysisRun:
    """Exécute la partie principale d'une analyse.

    Étapes :
    1. résolution de la commune (seule erreur bloquante : ``CommuneNotFound``)
    2. lancement des tâches estimations / logement
    3. transactions DVF avec repli entre sources
    4. statistiques
    """
    commune = await resolve_commune(client, query=query, code=code)

    session = AnalysisSession(commune=commune)
    if registry is not None:
        registry.activate(session)

    pending: dict[CategoryName, asyncio.Task[CategoryOutcome[Any]]] = {
        CategoryName.PRICE_ESTIMATE: asyncio.create_task(
            price_estimate_node(client, commune), name=f"price_estimate:{commune.code}"
        ),
        CategoryName.DEMOGRAPHICS: asyncio.create_task(
            demographics_node(client, commune), name=f"demographics:{commune.code}"
        ),
    }

    try:
        outcome = await transactions_node(client, commune.code)
    except BaseException:
        for task in pending.values():
            task.cancel()
        raise

    stats = compute_stats(outcome.data or [], commune)
    session, _ = _commit(registry, session, transactions=outcome, stats=stats)
    return AnalysisRun(session=session, pending=pending)


async def complete_analysis(
    run: AnalysisRun,
    registry: SessionRegistry | None = None,
    on_update: UpdateCallback | None = None,
) -> AnalysisSession:
    """Attend les catégories tardives dans leur ordre d'arrivée et les fusionne."""
    session = run.session
    names = {task: name for name, task in run.pending.items()}
    waiting = set(names)

    while waiting:
        done, waiting = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            name = names[task]
            try:
                outcome = task.result()
            except asyncio.CancelledError:
                outcome = CategoryOutcome.exhausted("annulé")
            except Exception as exc:
                logger.exception("%s: erreur inattendue", name.value)
                outcome = CategoryOutcome.exhausted(str(exc))

            session, accepted = _commit(registry, session, **{name.value: outcome})
            logger.info("%s: %s", name.value, outcome.state.value)
            if accepted and on_update is not None:
                await on_update(name, session)

    return session


async def analyze_commune(
    client: httpx.AsyncClient,
    *,
    query: str | None = None,
    code: str | None = None,
    registry: SessionRegistry | None = None,
) -> AnalysisSession:
    """Analyse complète, catégories tardives comprises."""
    run = await run_analysis(client, query=query, code=code, registry=registry)
    return await complete_analysis(run, registry)
