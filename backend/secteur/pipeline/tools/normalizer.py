"""Normalisation des mutations DVF brutes en ``Transaction`` canonique.

Chaque forme de source a sa propre fonction de correspondance ; les valeurs
numériques absentes ou invalides valent 0, jamais une exception.
"""

from __future__ import annotations

from typing import Any

from secteur.pipeline.tools.parsing import parse_float, parse_int, round_half_up
from secteur.schemas.market import (
    ADDRESS_PLACEHOLDER,
    CquestMutation,
    EtalabMutation,
    OpenDataSoftRecord,
    PropertyCategory,
    RawTransaction,
    Transaction,
)

# Ordre significatif : un libellé peut contenir plusieurs termes reconnus.
CATEGORY_TERMS: list[tuple[tuple[str, ...], PropertyCategory]] = [
    (("maison",), PropertyCategory.HOUSE),
    (("appartement",), PropertyCategory.APARTMENT),
    (("terrain", "dépendance"), PropertyCategory.LAND),
    (("local", "commerce"), PropertyCategory.COMMERCIAL),
]


def normalize_category(label: str | None) -> PropertyCategory:
    """Libellé ``type_local`` → PropertyCategory (premier terme trouvé)."""
    if not label:
        return PropertyCategory.OTHER
    text = str(label).lower()
    for terms, category in CATEGORY_TERMS:
        if any(term in text for term in terms):
            return category
    return PropertyCategory.OTHER


def _first_text(raw: dict[str, Any], *keys: str) -> str:
    """Première valeur non vide parmi plusieurs clés."""
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return str(value).strip()
    return ""


def _surface(raw: dict[str, Any]) -> float:
    """Surface bâtie, à défaut surface du terrain."""
    return parse_float(raw.get("surface_reelle_bati")) or parse_float(raw.get("surface_terrain"))


def build_transaction(
    *,
    date: str,
    label: str | None,
    address: str,
    area: float,
    price: float,
    rooms: int,
    postal_code: str | None = None,
    mutation_id: str | None = None,
) -> Transaction:
    return Transaction(
        date=date,
        category=normalize_category(label),
        address=address or ADDRESS_PLACEHOLDER,
        area=area,
        price=price,
        price_per_sqm=round_half_up(price / area) if area > 0 else 0,
        rooms=rooms,
        postal_code=postal_code,
        mutation_id=mutation_id,
    )


def normalize_etalab(record: EtalabMutation) -> Transaction:
    raw = record.raw
    return build_transaction(
        date=_first_text(raw, "date_mutation"),
        label=raw.get("type_local"),
        address=_first_text(raw, "adresse_nom_voie"),
        area=_surface(raw),
        price=parse_float(raw.get("valeur_fonciere")),
        rooms=parse_int(raw.get("nombre_pieces_principales")),
        postal_code=_first_text(raw, "code_postal") or None,
        mutation_id=_first_text(raw, "id_mutation") or None,
    )


def normalize_cquest(record: CquestMutation) -> Transaction:
    raw = record.raw
    return build_transaction(
        date=_first_text(raw, "date_mutation"),
        label=raw.get("type_local"),
        address=_first_text(raw, "adresse_nom_voie", "adresse"),
        area=_surface(raw),
        price=parse_float(raw.get("valeur_fonciere")),
        rooms=parse_int(raw.get("nombre_pieces_principales")),
    )


def normalize_opendatasoft(record: OpenDataSoftRecord) -> Transaction:
    raw = record.raw
    return build_transaction(
        date=_first_text(raw, "date_mutation"),
        label=raw.get("type_local"),
        address=_first_text(raw, "adresse_nom_voie"),
        area=_surface(raw),
        price=parse_float(raw.get("valeur_fonciere")),
        rooms=parse_int(raw.get("nombre_pieces_principales")),
    )


def normalize_transaction(record: RawTransaction) -> Transaction:
    """Aiguillage exhaustif sur la forme de la source."""
    match record:
        case EtalabMutation():
            return normalize_etalab(record)
        case CquestMutation():
            return normalize_cquest(record)
        case OpenDataSoftRecord():
            return normalize_opendatasoft(record)
    raise TypeError(f"forme de mutation inconnue: {type(record).__name__}")
