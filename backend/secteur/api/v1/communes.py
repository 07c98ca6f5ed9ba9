"""Autocomplétion des communes."""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from secteur.api.deps import get_http_client
from secteur.pipeline.tools.geo_api import suggest_communes

router = APIRouter()


@router.get("")
async def list_suggestions(
    q: str = Query("", description="Début du nom de la commune"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> list[dict]:
    """Communes correspondant au texte saisi, les plus peuplées d'abord."""
    communes = await suggest_communes(client, q)
    return [
        {**jsonable_encoder(c), "label": f"{c.name} ({c.first_postal_code or c.code})"}
        for c in communes
    ]
