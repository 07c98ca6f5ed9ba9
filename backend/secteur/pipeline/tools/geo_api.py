"""Geo API (geo.api.gouv.fr) : résolution des communes"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from secteur.config import settings
from secteur.errors import CommuneNotFound
from secteur.pipeline.tools.parsing import parse_float, parse_int
from secteur.schemas.commune import Commune, Department, Region

logger = logging.getLogger(__name__)

COMMUNE_FIELDS = "nom,code,codesPostaux,population,surface,departement,region"


def parse_commune(data: dict[str, Any]) -> Commune:
    """Réponse Geo API → Commune. ``surface`` est exprimée en hectares."""
    dept = data.get("departement") or None
    region = data.get("region") or None
    return Commune(
        name=data.get("nom", ""),
        code=str(data.get("code", "")),
        postal_codes=tuple(data.get("codesPostaux") or ()),
        population=parse_int(data.get("population")),
        area_hectares=parse_float(data.get("surface")),
        department=Department(code=str(dept.get("code", "")), name=dept.get("nom", "")) if dept else None,
        region=Region(code=str(region.get("code", "")), name=region.get("nom", "")) if region else None,
    )


async def _get_json(client: httpx.AsyncClient, path: str, params: dict[str, Any]) -> Any:
    """GET sur la Geo API. Tout échec (réseau, statut, JSON) → CommuneNotFound."""
    url = f"{settings.geo_api_base}{path}"
    try:
        response = await client.get(url, params=params, timeout=settings.geo_timeout_seconds)
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Geo API indisponible (%s): %s", path, exc)
        raise CommuneNotFound("Commune non trouvée") from exc


async def resolve_by_name(client: httpx.AsyncClient, text: str) -> Commune:
    """Meilleure correspondance (pondérée par la population) pour un nom libre."""
    query = text.strip()
    if not query:
        raise ValueError("Veuillez entrer le nom d'une commune")

    communes = await _get_json(
        client,
        "/communes",
        {"nom": query, "fields": COMMUNE_FIELDS, "limit": 1, "boost": "population"},
    )
    if not isinstance(communes, list) or not communes:
        raise CommuneNotFound(f"Commune non trouvée: {query}")

    commune = parse_commune(communes[0])
    logger.info("Commune résolue: '%s' → %s (%s)", query, commune.name, commune.code)
    return commune


async def resolve_by_code(client: httpx.AsyncClient, code: str) -> Commune:
    """Commune par code INSEE."""
    code = code.strip()
    if not code:
        raise ValueError("Code commune vide")

    data = await _get_json(client, f"/communes/{code}", {"fields": COMMUNE_FIELDS})
    if not isinstance(data, dict) or not data.get("code"):
        raise CommuneNotFound(f"Commune non trouvée: {code}")
    return parse_commune(data)


async def suggest_communes(
    client: httpx.AsyncClient,
    text: str,
    limit: int | None = None,
) -> list[Commune]:
    """Candidats d'autocomplétion. Purement indicatif : tout échec → liste vide."""
    query = text.strip()
    if len(query) < 2:
        return []
    try:
        communes = await _get_json(
            client,
            "/communes",
            {
                "nom": query,
                "fields": "nom,code,codesPostaux,population,departement",
                "limit": limit or settings.suggestion_limit,
                "boost": "population",
            },
        )
    except CommuneNotFound:
        return []
    if not isinstance(communes, list):
        return []
    return [parse_commune(c) for c in communes if isinstance(c, dict)]
