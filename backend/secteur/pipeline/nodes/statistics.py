"""Moteur de statistiques - prix au m², évolution annuelle, surfaces

Fonctions pures : aucune E/S, aucun état caché.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from secteur.pipeline.tools.parsing import round_half_up
from secteur.schemas.commune import Commune
from secteur.schemas.market import PropertyCategory, Transaction
from secteur.schemas.stats import CategoryPriceStats, StatsBundle, SurfaceBucket, YearlyStat

logger = logging.getLogger(__name__)

# Tranches fixes [lower, upper) en m²
SURFACE_BUCKETS: list[tuple[str, float, float | None]] = [
    ("Moins de 30m²", 0, 30),
    ("30 à 60m²", 30, 60),
    ("60 à 80m²", 60, 80),
    ("80 à 100m²", 80, 100),
    ("100 à 120m²", 100, 120),
    ("Plus de 120m²", 120, None),
]

_YEAR_RE = re.compile(r"^\s*(\d{4})")


# ---------------------------------------------------------------------------
# 1. Utilitaires
# ---------------------------------------------------------------------------


def median(values: Sequence[int]) -> int:
    """Médiane ; pour un effectif pair, moyenne arrondie des deux valeurs centrales."""
    if not values:
        raise ValueError("median() d'une séquence vide")
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return round_half_up((ordered[mid - 1] + ordered[mid]) / 2)


def transaction_year(date: str) -> int | None:
    """Année civile d'une date ISO (« 2022-05-01 » → 2022)."""
    match = _YEAR_RE.match(date or "")
    return int(match.group(1)) if match else None


def valid_transactions(transactions: Sequence[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.is_valid]


# ---------------------------------------------------------------------------
# 2. Agrégats
# ---------------------------------------------------------------------------


def compute_price_stats(valid: Sequence[Transaction]) -> dict[PropertyCategory, CategoryPriceStats]:
    """Prix au m² par type de bien. Un type sans transaction valide est absent."""
    by_category: dict[PropertyCategory, list[int]] = {}
    for t in valid:
        by_category.setdefault(t.category, []).append(t.price_per_sqm)

    return {
        category: CategoryPriceStats(
            count=len(prices),
            min=min(prices),
            max=max(prices),
            avg=round_half_up(sum(prices) / len(prices)),
            median=median(prices),
        )
        for category, prices in by_category.items()
    }


def compute_yearly_stats(valid: Sequence[Transaction]) -> list[YearlyStat]:
    """Volume et prix moyen au m² par année, tri croissant."""
    by_year: dict[int, list[int]] = {}
    for t in valid:
        year = transaction_year(t.date)
        if year is None:
            continue
        by_year.setdefault(year, []).append(t.price_per_sqm)

    return [
        YearlyStat(year=year, count=len(prices), avg_price_per_sqm=round_half_up(sum(prices) / len(prices)))
        for year, prices in sorted(by_year.items())
    ]


def compute_surface_distribution(valid: Sequence[Transaction]) -> list[SurfaceBucket]:
    """Histogramme des surfaces sur les six tranches fixes."""
    counts = [0] * len(SURFACE_BUCKETS)
    for t in valid:
        for index, (_, lower, upper) in enumerate(SURFACE_BUCKETS):
            if t.area >= lower and (upper is None or t.area < upper):
                counts[index] += 1
                break

    total = len(valid) or 1
    return [
        SurfaceBucket(
            label=label,
            lower=lower,
            upper=upper,
            count=count,
            percent=round_half_up(count / total * 100),
        )
        for (label, lower, upper), count in zip(SURFACE_BUCKETS, counts)
    ]


def compute_density(population: int, area_hectares: float) -> int:
    """Habitants au km² (1 km² = 100 ha), 0 si la surface est inconnue."""
    if area_hectares <= 0:
        return 0
    return round_half_up(population / (area_hectares / 100))


def calculate_price_evolution(yearly_stats: Sequence[YearlyStat]) -> int | None:
    """Évolution (%) du prix moyen entre la première et la dernière année.

    None avec moins de deux années ou un premier prix nul.
    """
    if len(yearly_stats) < 2:
        return None
    first = yearly_stats[0].avg_price_per_sqm
    last = yearly_stats[-1].avg_price_per_sqm
    if first == 0:
        return None
    return round_half_up((last - first) / first * 100)


def recent_transactions(transactions: Sequence[Transaction], limit: int = 50) -> list[Transaction]:
    """Transactions avec prix, de la plus récente à la plus ancienne."""
    priced = [t for t in transactions if t.price > 0]
    return sorted(priced, key=lambda t: t.date, reverse=True)[:limit]


# ---------------------------------------------------------------------------
# 3. Point d'entrée
# ---------------------------------------------------------------------------


def compute_stats(transactions: Sequence[Transaction], commune: Commune) -> StatsBundle:
    """Calcule l'ensemble des statistiques d'une commune."""
    valid = valid_transactions(transactions)
    yearly = compute_yearly_stats(valid)

    bundle = StatsBundle(
        total_transactions=len(transactions),
        valid_transactions=len(valid),
        price_stats=compute_price_stats(valid),
        yearly_stats=yearly,
        surface_distribution=compute_surface_distribution(valid),
        population=commune.population,
        area_hectares=commune.area_hectares,
        density=compute_density(commune.population, commune.area_hectares),
        price_evolution=calculate_price_evolution(yearly),
    )

    logger.info(
        "Statistiques %s: %d transactions (%d valides), %d types, %d années, densité %s hab/km²",
        commune.name,
        bundle.total_transactions,
        bundle.valid_transactions,
        len(bundle.price_stats),
        len(bundle.yearly_stats),
        f"{bundle.density:,}",
    )
    return bundle
