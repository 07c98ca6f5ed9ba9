"""Données extraites des pages HTML (MeilleursAgents, L'Internaute)

Un champ à ``None`` signifie « motif non trouvé », jamais zéro.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CategoryEstimate:
    """Prix au m² estimé pour un type de bien"""

    price_per_sqm: int | None = None
    range_min: int | None = None
    range_max: int | None = None


@dataclass(frozen=True)
class RentEstimate:
    """Loyers estimés (€/m²/mois)"""

    apartment: float | None = None
    house: float | None = None


@dataclass(frozen=True)
class PriceEstimate:
    """Estimations MeilleursAgents"""

    apartment: CategoryEstimate | None = None
    house: CategoryEstimate | None = None
    rent: RentEstimate | None = None
    url: str | None = None

    @property
    def has_data(self) -> bool:
        return any(v is not None for v in (self.apartment, self.house, self.rent))


@dataclass(frozen=True)
class HousingTypeShare:
    """Répartition maisons / appartements (%)"""

    houses: float | None = None
    apartments: float | None = None


@dataclass(frozen=True)
class ConstructionPeriod:
    period: str  # ex. "avant 1946"
    percent: float | None = None


@dataclass(frozen=True)
class DemographicProfile:
    """Données logement INSEE publiées par L'Internaute"""

    total_dwellings: int | None = None
    primary_residences: int | None = None
    secondary_residences: int | None = None
    vacant_dwellings: int | None = None
    housing_types: HousingTypeShare | None = None
    room_distribution: dict[str, float | None] | None = None  # "1 pièce" → %
    owners_percent: float | None = None
    renters_percent: float | None = None
    construction_period: ConstructionPeriod | None = None
    url: str | None = None

    @property
    def has_data(self) -> bool:
        return any(
            v is not None
            for v in (
                self.total_dwellings,
                self.primary_residences,
                self.secondary_residences,
                self.vacant_dwellings,
                self.housing_types,
                self.room_distribution,
                self.owners_percent,
                self.renters_percent,
                self.construction_period,
            )
        )
