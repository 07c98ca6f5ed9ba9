"""Adaptateurs des trois API DVF (par ordre de priorité)

1. Etalab (officielle, accès direct)      → ``{"mutations": [...]}``
2. cquest (complète, via proxy CORS)      → ``{"resultats": [...]}``
3. OpenDataSoft (catalogue, accès direct) → ``{"results": [...]}``
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from secteur.config import settings
from secteur.errors import MalformedUpstream
from secteur.pipeline.tools.normalizer import normalize_transaction
from secteur.pipeline.tools.relay import fetch_direct, retrieve
from secteur.schemas.market import (
    CquestMutation,
    EtalabMutation,
    OpenDataSoftRecord,
    RawTransaction,
    Transaction,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DvfSource:
    name: str
    url_template: str
    needs_relay: bool
    envelope_key: str
    wrap: Callable[[dict[str, Any]], RawTransaction]

    def build_url(self, code: str) -> str:
        return self.url_template.format(code=code)


def default_sources() -> list[DvfSource]:
    """Sources DVF dans l'ordre de repli, URL lues dans la configuration."""
    return [
        DvfSource(
            name="etalab",
            url_template=settings.dvf_etalab_url,
            needs_relay=False,
            envelope_key="mutations",
            wrap=EtalabMutation,
        ),
        DvfSource(
            name="cquest",
            url_template=settings.dvf_cquest_url,
            needs_relay=True,
            envelope_key="resultats",
            wrap=CquestMutation,
        ),
        DvfSource(
            name="opendatasoft",
            url_template=settings.dvf_opendatasoft_url,
            needs_relay=False,
            envelope_key="results",
            wrap=OpenDataSoftRecord,
        ),
    ]


def parse_envelope(source: DvfSource, payload: Any) -> list[Transaction]:
    """Extrait et normalise les mutations de l'enveloppe propre à la source."""
    if not isinstance(payload, dict):
        raise MalformedUpstream(f"{source.name}: enveloppe JSON inattendue")
    records = payload.get(source.envelope_key)
    if not isinstance(records, list):
        raise MalformedUpstream(f"{source.name}: clé '{source.envelope_key}' absente")
    return [normalize_transaction(source.wrap(r)) for r in records if isinstance(r, dict)]


async def fetch_source(
    client: httpx.AsyncClient,
    source: DvfSource,
    code: str,
) -> list[Transaction]:
    """Transactions d'une source pour un code INSEE.

    Lève ``SourceUnavailable`` (ou ``httpx.HTTPError``) en cas d'échec ; une
    liste vide signifie « aucune donnée » et vaut aussi échec pour le repli.
    """
    url = source.build_url(code)
    logger.debug("Tentative API %s: %s", source.name, url)

    if source.needs_relay:
        payload = await retrieve(client, url, "json", settings.source_timeout_seconds)
    else:
        payload = await fetch_direct(client, url, "json", settings.source_timeout_seconds)

    transactions = parse_envelope(source, payload)
    logger.debug("  ✓ %d transactions via %s", len(transactions), source.name)
    return transactions
