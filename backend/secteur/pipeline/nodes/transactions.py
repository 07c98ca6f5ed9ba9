"""Collecte des transactions DVF avec repli ordonné entre sources"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from secteur.errors import SourceUnavailable
from secteur.pipeline.tools.dvf_sources import DvfSource, default_sources, fetch_source
from secteur.schemas.analysis import CategoryOutcome
from secteur.schemas.market import Transaction

logger = logging.getLogger(__name__)


async def transactions_node(
    client: httpx.AsyncClient,
    code: str,
    sources: Sequence[DvfSource] | None = None,
) -> CategoryOutcome[list[Transaction]]:
    """Essaie chaque source DVF dans l'ordre, la suivante seulement après
    l'échec de la précédente.

    Une source « réussit » dès qu'elle fournit au moins une transaction.
    Échec réseau, enveloppe malformée et liste vide sont traités de la même
    façon : on passe à la source suivante. Après la dernière, la catégorie est
    épuisée (liste vide, pas d'exception).
    """
    source_list = default_sources() if sources is None else list(sources)
    logger.info("Recherche DVF pour code INSEE: %s", code)

    for attempt, source in enumerate(source_list, start=1):
        try:
            transactions = await fetch_source(client, source, code)
        except (SourceUnavailable, httpx.HTTPError) as exc:
            logger.warning("  ✗ API %s: %s", source.name, exc)
            continue

        if transactions:
            logger.info("DVF résolu via %s: %d transactions", source.name, len(transactions))
            return CategoryOutcome.resolved(transactions, source=source.name, attempts=attempt)

        logger.warning("  ✗ API %s: aucune transaction", source.name)

    logger.warning("Aucune donnée DVF trouvée pour %s", code)
    return CategoryOutcome.exhausted("Données DVF non disponibles", attempts=len(source_list))
