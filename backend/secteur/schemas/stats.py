"""Statistiques de marché dérivées des transactions"""

from __future__ import annotations

from dataclasses import dataclass, field

from secteur.schemas.market import PropertyCategory


@dataclass(frozen=True)
class CategoryPriceStats:
    """Prix au m² d'un type de bien (transactions valides uniquement)"""

    count: int
    min: int
    max: int
    avg: int
    median: int


@dataclass(frozen=True)
class YearlyStat:
    year: int
    count: int
    avg_price_per_sqm: int


@dataclass(frozen=True)
class SurfaceBucket:
    """Tranche de surface [lower, upper) ; upper=None pour la dernière tranche"""

    label: str
    lower: float
    upper: float | None
    count: int = 0
    percent: int = 0


@dataclass(frozen=True)
class StatsBundle:
    """Résultat complet du moteur de statistiques"""

    total_transactions: int = 0
    valid_transactions: int = 0
    price_stats: dict[PropertyCategory, CategoryPriceStats] = field(default_factory=dict)
    yearly_stats: list[YearlyStat] = field(default_factory=list)
    surface_distribution: list[SurfaceBucket] = field(default_factory=list)
    population: int = 0
    area_hectares: float = 0.0
    density: int = 0
    price_evolution: int | None = None  # % entre la première et la dernière année
