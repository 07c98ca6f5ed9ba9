"""Sources HTML scrapées via proxy CORS (MeilleursAgents, L'Internaute)"""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import replace

import httpx

from secteur.config import settings
from secteur.errors import AllRelaysFailed
from secteur.pipeline.tools.parsing import slugify
from secteur.pipeline.tools.relay import iter_relayed
from secteur.pipeline.tools.text_patterns import html_to_text, parse_demographics, parse_price_estimate
from secteur.schemas.commune import Commune, SourceLink
from secteur.schemas.estimates import DemographicProfile, PriceEstimate

logger = logging.getLogger(__name__)

HTML_HEADERS = {"Accept": "text/html"}

# Marqueurs attendus dans une page L'Internaute authentique
LINTERNAUTE_MARKERS = ("linternaute", "logement", "immobilier")


def meilleurs_agents_url(commune: Commune) -> str:
    return f"{settings.meilleurs_agents_base}{slugify(commune.name)}-{commune.first_postal_code}/"


def linternaute_url(commune: Commune) -> str:
    return f"{settings.linternaute_base}{slugify(commune.name)}/ville-{commune.code}/immobilier"


async def fetch_price_estimate(client: httpx.AsyncClient, commune: Commune) -> PriceEstimate:
    """Estimations MeilleursAgents.

    Chaque réponse de proxy est analysée ; on passe au proxy suivant tant
    qu'aucun fait n'est trouvé. Lève ``AllRelaysFailed`` sinon.
    """
    url = meilleurs_agents_url(commune)
    logger.debug("Tentative MeilleursAgents: %s", url)

    pages = iter_relayed(
        client,
        url,
        "text",
        timeout=settings.price_estimate_timeout_seconds,
        headers=HTML_HEADERS,
    )
    async with aclosing(pages):
        async for html in pages:
            estimate = parse_price_estimate(html_to_text(html))
            if estimate.has_data:
                logger.info("MeilleursAgents récupéré pour %s", commune.name)
                return replace(estimate, url=url)
            logger.debug("  ✗ page MeilleursAgents sans prix reconnu")

    raise AllRelaysFailed(f"MeilleursAgents indisponible: {url}")


async def fetch_demographics(client: httpx.AsyncClient, commune: Commune) -> DemographicProfile:
    """Données logement L'Internaute. Lève ``AllRelaysFailed`` si rien d'exploitable."""
    url = linternaute_url(commune)
    logger.debug("Tentative L'Internaute: %s", url)

    pages = iter_relayed(
        client,
        url,
        "text",
        timeout=settings.source_timeout_seconds,
        headers=HTML_HEADERS,
    )
    async with aclosing(pages):
        async for html in pages:
            lowered = html.lower()
            if not any(marker in lowered for marker in LINTERNAUTE_MARKERS):
                logger.warning("  ✗ contenu HTML L'Internaute non valide")
                continue
            profile = parse_demographics(html_to_text(html))
            if profile.has_data:
                logger.info("Données L'Internaute récupérées pour %s", commune.name)
                return replace(profile, url=url)
            logger.debug("  ✗ page L'Internaute sans donnée reconnue")

    raise AllRelaysFailed(f"L'Internaute indisponible: {url}")


def source_links(commune: Commune) -> list[SourceLink]:
    """Liens de consultation manuelle affichés à côté des résultats."""
    dept_code = commune.department.code if commune.department else commune.code[:2]
    return [
        SourceLink(
            name="DVF Etalab",
            description="Transactions immobilières officielles",
            url=f"https://app.dvf.etalab.gouv.fr/?code_departement={dept_code}",
        ),
        SourceLink(
            name="Code source DVF",
            description="GitHub Etalab - Open Source",
            url="https://github.com/etalab/DVF-app",
        ),
        SourceLink(
            name="MeilleursAgents",
            description="Estimations et prix du marché",
            url=meilleurs_agents_url(commune),
        ),
        SourceLink(
            name="L'Internaute",
            description="Données INSEE détaillées",
            url=linternaute_url(commune),
        ),
        SourceLink(
            name="INSEE",
            description="Statistiques officielles",
            url=f"https://www.insee.fr/fr/statistiques/2011101?geo=COM-{commune.code}",
        ),
        SourceLink(
            name="Data.gouv.fr",
            description="Télécharger les données DVF brutes",
            url="https://www.data.gouv.fr/fr/datasets/demandes-de-valeurs-foncieres/",
        ),
    ]
