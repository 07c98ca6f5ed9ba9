"""Projection d'une session en tables plates pour l'export tableur"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from secteur.pipeline.state import AnalysisSession
from secteur.schemas.commune import Commune
from secteur.schemas.estimates import CategoryEstimate, DemographicProfile, PriceEstimate
from secteur.schemas.export import ExportTable
from secteur.schemas.stats import StatsBundle

TRANSACTION_HEADERS = ["Date", "Type", "Adresse", "Surface (m²)", "Prix (€)", "Prix/m² (€)", "Nb pièces"]
YEARLY_HEADERS = ["Année", "Nb transactions", "Prix moyen €/m²"]
SURFACE_HEADERS = ["Tranche de surface", "Nombre", "Pourcentage"]


def _or_dash(value: Any, suffix: str = "") -> str:
    return f"{'-' if value is None else value}{suffix}"


def _commune_rows(commune: Commune, stats: StatsBundle, generated_on: date) -> list[list[Any]]:
    return [
        [f"ANALYSE DE SECTEUR - {commune.name.upper()}"],
        [f"Généré le {generated_on.strftime('%d/%m/%Y')}"],
        [""],
        ["INFORMATIONS GÉNÉRALES"],
        ["Commune", commune.name],
        ["Code INSEE", commune.code],
        ["Département", commune.department.name if commune.department else ""],
        ["Code postal", ", ".join(commune.postal_codes)],
        ["Population", commune.population],
        ["Superficie (km²)", f"{commune.area_km2:.2f}"],
        ["Densité (hab/km²)", stats.density],
        [""],
        ["PRIX AU M² (DVF - Transactions réelles)"],
        *(
            [category.value, "", "Moyen", f"{s.avg} €", "Min", f"{s.min} €", "Max", f"{s.max} €", "Nb", s.count]
            for category, s in stats.price_stats.items()
        ),
    ]


def _estimate_row(label: str, estimate: CategoryEstimate) -> list[Any]:
    return [
        label,
        _or_dash(estimate.price_per_sqm, " €/m²"),
        "Min",
        _or_dash(estimate.range_min, " €"),
        "Max",
        _or_dash(estimate.range_max, " €"),
    ]


def _price_estimate_rows(estimate: PriceEstimate) -> list[list[Any]]:
    rows: list[list[Any]] = []
    if estimate.apartment is not None or estimate.house is not None:
        rows.extend([[""], ["ESTIMATIONS MEILLEURSAGENTS"]])
        if estimate.apartment is not None:
            rows.append(_estimate_row("Appartement", estimate.apartment))
        if estimate.house is not None:
            rows.append(_estimate_row("Maison", estimate.house))

    # Les loyers seuls suffisent à résoudre l'estimation : section indépendante
    if estimate.rent is not None:
        rows.extend([[""], ["LOYERS ESTIMÉS"]])
        if estimate.rent.apartment is not None:
            rows.append(["Loyer Appartement", f"{estimate.rent.apartment} €/m²"])
        if estimate.rent.house is not None:
            rows.append(["Loyer Maison", f"{estimate.rent.house} €/m²"])
    return rows


def _demographic_rows(profile: DemographicProfile) -> list[list[Any]]:
    rows: list[list[Any]] = [[""], ["DONNÉES INSEE (L'INTERNAUTE)"]]

    counts = [
        ("Nombre total de logements", profile.total_dwellings),
        ("Résidences principales", profile.primary_residences),
        ("Résidences secondaires", profile.secondary_residences),
        ("Logements vacants", profile.vacant_dwellings),
    ]
    rows.extend([label, value] for label, value in counts if value is not None)

    shares = [
        ("Part maisons", profile.housing_types.houses if profile.housing_types else None),
        ("Part appartements", profile.housing_types.apartments if profile.housing_types else None),
        ("Propriétaires", profile.owners_percent),
        ("Locataires", profile.renters_percent),
    ]
    rows.extend([label, f"{value}%"] for label, value in shares if value is not None)

    if profile.construction_period is not None:
        period = profile.construction_period
        rows.append([f"Construits {period.period}", _or_dash(period.percent, "%")])

    if profile.room_distribution:
        rows.extend([[""], ["RÉPARTITION PAR NOMBRE DE PIÈCES"]])
        rows.extend([rooms, _or_dash(percent, "%")] for rooms, percent in profile.room_distribution.items())
    return rows


def build_summary_rows(session: AnalysisSession, generated_on: date) -> list[list[Any]]:
    stats = session.stats or StatsBundle()
    rows = _commune_rows(session.commune, stats, generated_on)
    if session.price_estimate.data is not None:
        rows.extend(_price_estimate_rows(session.price_estimate.data))
    if session.demographics.data is not None:
        rows.extend(_demographic_rows(session.demographics.data))
    return rows


def project_export(session: AnalysisSession, generated_on: date | None = None) -> list[ExportTable]:
    """Session → quatre tables (synthèse, transactions, évolution, surfaces)."""
    generated_on = generated_on or date.today()
    stats = session.stats or StatsBundle()

    return [
        ExportTable(name="Synthèse", rows=build_summary_rows(session, generated_on)),
        ExportTable(
            name="Transactions DVF",
            headers=TRANSACTION_HEADERS,
            rows=[
                [t.date, t.category.value, t.address, t.area, t.price, t.price_per_sqm, t.rooms]
                for t in session.transaction_list
            ],
        ),
        ExportTable(
            name="Évolution",
            headers=YEARLY_HEADERS,
            rows=[[y.year, y.count, y.avg_price_per_sqm] for y in stats.yearly_stats],
        ),
        ExportTable(
            name="Répartition surfaces",
            headers=SURFACE_HEADERS,
            rows=[[b.label, b.count, f"{b.percent}%"] for b in stats.surface_distribution],
        ),
    ]


def export_filename(commune: Commune, day: date | None = None) -> str:
    day = day or date.today()
    name = re.sub(r"\s+", "_", commune.name)
    return f"Analyse_Secteur_{name}_{day.isoformat()}.xlsx"
