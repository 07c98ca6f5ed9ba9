"""Catégories optionnelles : estimations de prix et données logement.

Ces deux nœuds ne lèvent jamais : un échec devient un résultat EXHAUSTED,
pour ne jamais interrompre ni retarder l'analyse principale.
"""

from __future__ import annotations

import logging

import httpx

from secteur.errors import SourceUnavailable
from secteur.pipeline.tools.html_sources import fetch_demographics, fetch_price_estimate
from secteur.schemas.analysis import CategoryOutcome
from secteur.schemas.commune import Commune
from secteur.schemas.estimates import DemographicProfile, PriceEstimate

logger = logging.getLogger(__name__)


async def price_estimate_node(
    client: httpx.AsyncClient,
    commune: Commune,
) -> CategoryOutcome[PriceEstimate]:
    try:
        estimate = await fetch_price_estimate(client, commune)
    except (SourceUnavailable, httpx.HTTPError) as exc:
        logger.warning("MeilleursAgents non disponible: %s", exc)
        return CategoryOutcome.exhausted("Données non disponibles automatiquement.")
    return CategoryOutcome.resolved(estimate, source="meilleursagents")


async def demographics_node(
    client: httpx.AsyncClient,
    commune: Commune,
) -> CategoryOutcome[DemographicProfile]:
    try:
        profile = await fetch_demographics(client, commune)
    except (SourceUnavailable, httpx.HTTPError) as exc:
        logger.warning("L'Internaute non disponible: %s", exc)
        return CategoryOutcome.exhausted("Données L'Internaute non disponibles")
    return CategoryOutcome.resolved(profile, source="linternaute")
