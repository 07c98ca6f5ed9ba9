"""Transactions DVF : enregistrements bruts par source et forme canonique"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PropertyCategory(str, Enum):
    HOUSE = "Maison"
    APARTMENT = "Appartement"
    LAND = "Terrain"
    COMMERCIAL = "Commerce"
    OTHER = "Autre"


ADDRESS_PLACEHOLDER = "Non renseignée"


@dataclass(frozen=True)
class Transaction:
    """Mutation DVF normalisée, quelle que soit la source d'origine.

    ``price_per_sqm`` est dérivé : round(price / area) si area > 0, sinon 0.
    """

    date: str
    category: PropertyCategory
    address: str
    area: float
    price: float
    price_per_sqm: int
    rooms: int = 0
    postal_code: str | None = None
    mutation_id: str | None = None

    @property
    def is_valid(self) -> bool:
        """Exploitable pour les statistiques (prix et surface renseignés)."""
        return self.price > 0 and self.area > 0


# ---------------------------------------------------------------------------
# Enregistrements bruts (un type par forme de source)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EtalabMutation:
    """Élément de ``{"mutations": [...]}`` (app.dvf.etalab.gouv.fr)"""

    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CquestMutation:
    """Élément de ``{"resultats": [...]}`` (api.cquest.org)"""

    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OpenDataSoftRecord:
    """Élément de ``{"results": [...]}`` (data.opendatasoft.com)"""

    raw: dict[str, Any] = field(default_factory=dict)


RawTransaction = EtalabMutation | CquestMutation | OpenDataSoftRecord
