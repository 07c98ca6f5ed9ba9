"""Export tableur : projection d'une session en quatre tables"""

from __future__ import annotations

import ast
from dataclasses import replace
from datetime import date
from pathlib import Path

from secteur.pipeline.nodes import export as export_module
from secteur.pipeline.nodes.export import (
    SURFACE_HEADERS,
    TRANSACTION_HEADERS,
    YEARLY_HEADERS,
    export_filename,
    project_export,
)
from secteur.pipeline.nodes.statistics import compute_stats
from secteur.pipeline.state import AnalysisSession
from secteur.pipeline.tools.normalizer import build_transaction
from secteur.schemas.analysis import CategoryOutcome
from secteur.schemas.commune import Commune
from secteur.schemas.estimates import (
    CategoryEstimate,
    ConstructionPeriod,
    DemographicProfile,
    HousingTypeShare,
    PriceEstimate,
    RentEstimate,
)

DAY = date(2024, 3, 9)


def _session(commune: Commune, **changes) -> AnalysisSession:
    transactions = [
        build_transaction(date="2022-05-01", label="Appartement", address="RUE DE RIVOLI", area=50, price=500000, rooms=2),
        build_transaction(date="2023-06-01", label="Appartement", address="", area=30, price=300000, rooms=1),
    ]
    session = AnalysisSession(
        commune=commune,
        transactions=CategoryOutcome.resolved(transactions, source="etalab"),
        stats=compute_stats(transactions, commune),
    )
    return replace(session, **changes)


# ---------------------------------------------------------------------------
# T-1: Structure
# ---------------------------------------------------------------------------


def test_four_tables(paris):
    tables = project_export(_session(paris), DAY)

    assert [t.name for t in tables] == ["Synthèse", "Transactions DVF", "Évolution", "Répartition surfaces"]
    assert tables[0].headers == []
    assert tables[1].headers == TRANSACTION_HEADERS
    assert tables[2].headers == YEARLY_HEADERS
    assert tables[3].headers == SURFACE_HEADERS


def test_data_tables(paris):
    _, transactions, yearly, surfaces = project_export(_session(paris), DAY)

    assert transactions.rows[0] == ["2022-05-01", "Appartement", "RUE DE RIVOLI", 50, 500000, 10000, 2]
    assert transactions.rows[1][2] == "Non renseignée"
    assert yearly.rows == [[2022, 1, 10000], [2023, 1, 10000]]
    assert len(surfaces.rows) == 6
    assert surfaces.rows[1] == ["30 à 60m²", 2, "100%"]


# ---------------------------------------------------------------------------
# T-2: Synthèse
# ---------------------------------------------------------------------------


def test_summary_general_section(paris):
    rows = project_export(_session(paris), DAY)[0].rows

    assert rows[0] == ["ANALYSE DE SECTEUR - PARIS"]
    assert rows[1] == ["Généré le 09/03/2024"]
    assert ["Code INSEE", "75056"] in rows
    assert ["Code postal", "75001, 75002"] in rows
    assert ["Superficie (km²)", "105.40"] in rows
    assert ["Densité (hab/km²)", 20238] in rows
    assert ["Appartement", "", "Moyen", "10000 €", "Min", "10000 €", "Max", "10000 €", "Nb", 2] in rows


def test_summary_without_optional_sections(paris):
    rows = project_export(_session(paris), DAY)[0].rows
    flat = [cell for row in rows for cell in row]

    assert "ESTIMATIONS MEILLEURSAGENTS" not in flat
    assert "DONNÉES INSEE (L'INTERNAUTE)" not in flat


def test_summary_with_estimates_and_demographics(paris):
    estimate = PriceEstimate(
        apartment=CategoryEstimate(price_per_sqm=10450, range_min=7800, range_max=None),
        rent=RentEstimate(apartment=31.6),
    )
    profile = DemographicProfile(
        total_dwellings=1393500,
        housing_types=HousingTypeShare(houses=1.2, apartments=98.8),
        room_distribution={"1 pièce": 22.0, "5+ pièces": 10.0},
        construction_period=ConstructionPeriod(period="avant 1946", percent=59.0),
    )
    session = _session(
        paris,
        price_estimate=CategoryOutcome.resolved(estimate, source="meilleursagents"),
        demographics=CategoryOutcome.resolved(profile, source="linternaute"),
    )

    rows = project_export(session, DAY)[0].rows

    assert ["Appartement", "10450 €/m²", "Min", "7800 €", "Max", "- €"] in rows
    assert ["Loyer Appartement", "31.6 €/m²"] in rows
    assert ["Nombre total de logements", 1393500] in rows
    assert ["Part maisons", "1.2%"] in rows
    assert ["Construits avant 1946", "59.0%"] in rows
    assert ["5+ pièces", "10.0%"] in rows
    assert ["Résidences principales", None] not in rows


def test_summary_with_rent_only_estimate(paris):
    estimate = PriceEstimate(rent=RentEstimate(apartment=25.0, house=18.5))
    assert estimate.has_data
    session = _session(paris, price_estimate=CategoryOutcome.resolved(estimate, source="meilleursagents"))

    rows = project_export(session, DAY)[0].rows
    flat = [cell for row in rows for cell in row]

    assert "ESTIMATIONS MEILLEURSAGENTS" not in flat
    assert ["LOYERS ESTIMÉS"] in rows
    assert ["Loyer Appartement", "25.0 €/m²"] in rows
    assert ["Loyer Maison", "18.5 €/m²"] in rows


# ---------------------------------------------------------------------------
# T-3: Nom de fichier
# ---------------------------------------------------------------------------


def test_export_filename():
    commune = Commune(name="Saint  Jean de Luz", code="64483")
    assert export_filename(commune, DAY) == "Analyse_Secteur_Saint_Jean_de_Luz_2024-03-09.xlsx"


def test_export_filename_tabs_and_newlines():
    commune = Commune(name="Saint-Denis\t \nde-la-Réunion", code="97411")
    assert export_filename(commune, DAY) == "Analyse_Secteur_Saint-Denis_de-la-Réunion_2024-03-09.xlsx"


def test_export_module_parses_on_oldest_supported_python():
    """Le module doit rester importable sur Python 3.11 (pas de f-string PEP 701)."""
    source = Path(export_module.__file__).read_text(encoding="utf-8")
    for node in ast.walk(ast.parse(source)):
        if isinstance(node, ast.FormattedValue):
            segment = ast.get_source_segment(source, node.value) or ""
            assert "\\" not in segment
