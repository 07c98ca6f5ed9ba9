"""Accès aux sources cross-origin via une liste ordonnée de proxies CORS.

Les proxies sont essayés strictement l'un après l'autre (pas de course en
parallèle, pas de nouvel essai sur un même proxy) ; un dépassement du délai
compte comme l'échec de ce proxy uniquement.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from typing import Any, Literal
from urllib.parse import quote

import httpx

from secteur.config import settings
from secteur.errors import AllRelaysFailed, MalformedUpstream

logger = logging.getLogger(__name__)

ExpectedFormat = Literal["json", "text"]


def build_relay_url(relay: str, target_url: str) -> str:
    """Préfixe du proxy + URL cible entièrement encodée."""
    return relay + quote(target_url, safe="")


def _decode(response: httpx.Response, expected_format: ExpectedFormat) -> Any:
    if expected_format == "json":
        return response.json()
    return response.text


async def fetch_direct(
    client: httpx.AsyncClient,
    url: str,
    expected_format: ExpectedFormat = "json",
    timeout: float | None = None,
) -> Any:
    """Appel direct (sans proxy). Lève ``httpx.HTTPError`` ou ``MalformedUpstream``."""
    response = await client.get(url, timeout=timeout or settings.source_timeout_seconds)
    response.raise_for_status()
    try:
        return _decode(response, expected_format)
    except ValueError as exc:
        raise MalformedUpstream(f"réponse non décodable: {url}") from exc


async def iter_relayed(
    client: httpx.AsyncClient,
    target_url: str,
    expected_format: ExpectedFormat = "json",
    timeout: float | None = None,
    relays: Sequence[str] | None = None,
    headers: dict[str, str] | None = None,
) -> AsyncIterator[Any]:
    """Produit, dans l'ordre des proxies, chaque réponse réussie et décodée.

    L'appelant arrête l'itération dès qu'une réponse lui convient ; les
    proxies suivants ne sont alors jamais contactés.
    """
    relay_list = settings.cors_relays if relays is None else relays
    budget = timeout or settings.source_timeout_seconds

    for index, relay in enumerate(relay_list, start=1):
        url = build_relay_url(relay, target_url)
        logger.debug("  → proxy %d/%d: %s", index, len(relay_list), relay[:30])
        try:
            response = await client.get(url, timeout=budget, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("  ✗ proxy échoué (%s): %s", relay[:30], exc)
            continue

        if not response.is_success:
            logger.warning("  ✗ proxy %s: HTTP %d", relay[:30], response.status_code)
            continue

        try:
            payload = _decode(response, expected_format)
        except ValueError:
            logger.warning("  ✗ proxy %s: réponse non décodable", relay[:30])
            continue

        yield payload


async def retrieve(
    client: httpx.AsyncClient,
    target_url: str,
    expected_format: ExpectedFormat = "json",
    timeout: float | None = None,
    relays: Sequence[str] | None = None,
) -> Any:
    """Première réponse réussie parmi les proxies, sinon ``AllRelaysFailed``."""
    async with aclosing(iter_relayed(client, target_url, expected_format, timeout, relays)) as payloads:
        async for payload in payloads:
            return payload
    raise AllRelaysFailed(f"tous les proxies ont échoué: {target_url}")
