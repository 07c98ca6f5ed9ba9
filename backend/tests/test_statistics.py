"""Moteur de statistiques : prix au m², évolution annuelle, surfaces

Fonctions pures, testées sans aucune E/S.
"""

from __future__ import annotations

import pytest

from secteur.pipeline.nodes.statistics import (
    SURFACE_BUCKETS,
    calculate_price_evolution,
    compute_density,
    compute_price_stats,
    compute_stats,
    compute_surface_distribution,
    compute_yearly_stats,
    median,
    recent_transactions,
    transaction_year,
)
from secteur.pipeline.tools.normalizer import build_transaction
from secteur.schemas.commune import Commune
from secteur.schemas.market import PropertyCategory
from secteur.schemas.stats import CategoryPriceStats, YearlyStat

PARIS = Commune(name="Paris", code="75056", postal_codes=("75001",), population=2133111, area_hectares=10540)


def _txn(price: float, area: float, label: str = "Appartement", date: str = "2022-05-01"):
    return build_transaction(date=date, label=label, address="", area=area, price=price, rooms=0)


# ---------------------------------------------------------------------------
# T-1: Médiane
# ---------------------------------------------------------------------------


def test_median_even_count():
    assert median([2000, 3000, 4000, 5000]) == 3500


def test_median_odd_count():
    assert median([2000, 3000, 5000]) == 3000


def test_median_unsorted_and_half_up():
    assert median([5, 2]) == 4  # (2 + 5) / 2 = 3.5 → 4


def test_median_empty():
    with pytest.raises(ValueError):
        median([])


# ---------------------------------------------------------------------------
# T-2: Scénario A (Paris, deux appartements)
# ---------------------------------------------------------------------------


def test_scenario_paris_two_apartments():
    transactions = [
        _txn(500000, 50, date="2022-05-01"),
        _txn(300000, 30, date="2023-06-01"),
    ]

    bundle = compute_stats(transactions, PARIS)

    assert bundle.price_stats == {
        PropertyCategory.APARTMENT: CategoryPriceStats(count=2, min=10000, max=10000, avg=10000, median=10000),
    }
    assert bundle.yearly_stats == [
        YearlyStat(year=2022, count=1, avg_price_per_sqm=10000),
        YearlyStat(year=2023, count=1, avg_price_per_sqm=10000),
    ]
    assert bundle.price_evolution == 0
    assert bundle.total_transactions == 2
    assert bundle.valid_transactions == 2
    assert bundle.density == 20238


# ---------------------------------------------------------------------------
# T-3: Invariants des agrégats
# ---------------------------------------------------------------------------


def test_price_stats_bounds():
    transactions = [
        _txn(210000, 70),
        _txn(150000, 30),
        _txn(99000, 45),
        _txn(400000, 90, label="Maison"),
        _txn(250000, 100, label="Maison"),
    ]

    stats = compute_price_stats(transactions)

    assert set(stats) == {PropertyCategory.APARTMENT, PropertyCategory.HOUSE}
    for s in stats.values():
        assert s.min <= s.median <= s.max
        assert s.min <= s.avg <= s.max
    assert stats[PropertyCategory.APARTMENT].count == 3
    assert stats[PropertyCategory.HOUSE].median == 3472  # (4444 + 2500) / 2


def test_invalid_transactions_excluded():
    transactions = [_txn(300000, 60), _txn(0, 60), _txn(100000, 0)]
    bundle = compute_stats(transactions, PARIS)

    assert bundle.total_transactions == 3
    assert bundle.valid_transactions == 1
    assert bundle.price_stats[PropertyCategory.APARTMENT].count == 1


def test_yearly_stats_sorted_and_skip_bad_dates():
    transactions = [
        _txn(300000, 60, date="2023-01-10"),
        _txn(200000, 50, date="2021-07-02"),
        _txn(260000, 50, date="2021-09-20"),
        _txn(260000, 50, date="inconnue"),
    ]

    yearly = compute_yearly_stats(transactions)

    assert [y.year for y in yearly] == [2021, 2023]
    assert yearly[0] == YearlyStat(year=2021, count=2, avg_price_per_sqm=4600)
    assert transaction_year("inconnue") is None


def test_price_evolution():
    yearly = [
        YearlyStat(year=2020, count=3, avg_price_per_sqm=4000),
        YearlyStat(year=2021, count=1, avg_price_per_sqm=4100),
        YearlyStat(year=2022, count=2, avg_price_per_sqm=4500),
    ]
    assert calculate_price_evolution(yearly) == 13  # 12.5 → 13
    assert calculate_price_evolution(yearly[:1]) is None
    assert calculate_price_evolution([]) is None


def test_density():
    assert compute_density(2133111, 10540) == 20238
    assert compute_density(1000, 0) == 0


# ---------------------------------------------------------------------------
# T-4: Histogramme des surfaces
# ---------------------------------------------------------------------------


def test_surface_distribution_sums_to_100():
    areas = [25, 30, 45, 59.9, 60, 75, 80, 99, 100, 119, 120, 250]
    buckets = compute_surface_distribution([_txn(200000, a) for a in areas])

    assert [b.count for b in buckets] == [1, 3, 2, 2, 2, 2]
    assert sum(b.count for b in buckets) == len(areas)
    assert abs(sum(b.percent for b in buckets) - 100) <= 1


def test_surface_distribution_empty():
    buckets = compute_surface_distribution([])

    assert len(buckets) == len(SURFACE_BUCKETS)
    assert all(b.count == 0 and b.percent == 0 for b in buckets)


# ---------------------------------------------------------------------------
# T-5: Scénario B (aucune transaction) et idempotence
# ---------------------------------------------------------------------------


def test_stats_on_empty_sequence():
    bundle = compute_stats([], PARIS)

    assert bundle.price_stats == {}
    assert bundle.yearly_stats == []
    assert bundle.price_evolution is None
    assert all(b.count == 0 and b.percent == 0 for b in bundle.surface_distribution)


def test_compute_stats_is_idempotent():
    transactions = [_txn(180000, 40, date="2020-02-01"), _txn(520000, 130, label="Maison", date="2024-03-01")]
    assert compute_stats(transactions, PARIS) == compute_stats(transactions, PARIS)


# ---------------------------------------------------------------------------
# T-6: Dernières transactions
# ---------------------------------------------------------------------------


def test_recent_transactions_sorted_desc_and_priced():
    transactions = [
        _txn(100000, 20, date="2021-01-01"),
        _txn(0, 20, date="2024-01-01"),
        _txn(200000, 40, date="2023-05-01"),
        _txn(150000, 30, date="2022-08-01"),
    ]

    recent = recent_transactions(transactions, limit=2)

    assert [t.date for t in recent] == ["2023-05-01", "2022-08-01"]
