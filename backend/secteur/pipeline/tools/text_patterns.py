"""Extraction de chiffres depuis le texte des pages scrapées.

Chaque fait dispose d'une liste ordonnée de formulations reconnues ; la
première qui correspond n'importe où dans le texte l'emporte. Un fait sans
correspondance reste absent (jamais déduit ni mis à 0). Un fait dont la
formulation correspond mais dont le nombre est illisible est présent avec la
valeur ``None``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

from secteur.pipeline.tools.parsing import parse_percent, parse_price
from secteur.schemas.estimates import (
    CategoryEstimate,
    ConstructionPeriod,
    DemographicProfile,
    HousingTypeShare,
    PriceEstimate,
    RentEstimate,
)

# Montant : chiffres séparés par des espaces (y compris insécables), sans retour à la ligne
NUM = r"(\d(?:[\d \u00a0\u202f]*\d)?)"
# Effectif : groupes de trois chiffres (espace ou virgule), ou chiffres contigus
COUNT = r"(\d{1,3}(?:[ \u00a0\u202f,]\d{3})+|\d+)"
PCT = r"(\d+(?:[.,]\d+)?)"
# Espacement sur une même ligne (le texte extrait sépare les blocs par des retours)
INLINE = r"[ \t\u00a0\u202f]*"


@dataclass(frozen=True)
class ExtractionRule:
    fact: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], Any]
    # Correspondance ignorée si ce motif figure sur sa ligne (avant la fin du match)
    exclude: re.Pattern[str] | None = None

    def search(self, text: str) -> re.Match[str] | None:
        for match in self.pattern.finditer(text):
            if self.exclude is None:
                return match
            line_start = text.rfind("\n", 0, match.start()) + 1
            if not self.exclude.search(text, line_start, match.end()):
                return match
        return None


def _amount(match: re.Match[str]) -> int | None:
    return parse_price(match.group(1))


def _count(match: re.Match[str]) -> int | None:
    return parse_price(match.group(1).replace(",", ""))


def _decimal(match: re.Match[str]) -> float | None:
    return parse_percent(match.group(1))


def _range(match: re.Match[str]) -> tuple[int | None, int | None]:
    return parse_price(match.group(1)), parse_price(match.group(2))


def _construction(match: re.Match[str]) -> ConstructionPeriod:
    return ConstructionPeriod(
        period=f"{match.group(1).lower()} {match.group(2)}",
        percent=parse_percent(match.group(3)),
    )


def rule(
    fact: str,
    regex: str,
    extract: Callable[[re.Match[str]], Any] = _amount,
    exclude: str | None = None,
) -> ExtractionRule:
    return ExtractionRule(
        fact=fact,
        pattern=re.compile(regex, re.IGNORECASE),
        extract=extract,
        exclude=re.compile(exclude, re.IGNORECASE) if exclude else None,
    )


def extract_facts(text: str, rules: Iterable[ExtractionRule]) -> dict[str, Any]:
    """Évalue la table de règles : première correspondance par fait."""
    facts: dict[str, Any] = {}
    for r in rules:
        if r.fact in facts:
            continue
        match = r.search(text)
        if match:
            facts[r.fact] = r.extract(match)
    return facts


def html_to_text(html: str) -> str:
    """Texte visible d'une page (scripts et styles exclus)."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text("\n", strip=True)


# ---------------------------------------------------------------------------
# 1. MeilleursAgents : prix au m² et loyers
# ---------------------------------------------------------------------------


def _price_rules(fact: str, singular: str, plural: str) -> list[ExtractionRule]:
    # Un montant annoncé comme loyer n'est pas un prix de vente
    return [
        rule(fact, rf"{plural}[^€]*?{NUM}\s*€[^€]*?m²", exclude="loyer"),
        rule(fact, rf"prix\s+(?:du\s+)?m²\s+(?:moyen\s+)?(?:des\s+|pour\s+les\s+)?{plural}[^€]*?{NUM}\s*€", exclude="loyer"),
        rule(fact, rf"{singular}[^€]*?{NUM}\s*€\s*(?:/\s*)?m²", exclude="loyer"),
    ]


def _range_rules(fact: str, singular: str) -> list[ExtractionRule]:
    return [
        rule(fact, rf"{singular}[^€]*?entre\s*{NUM}\s*€\s*et\s*{NUM}\s*€", _range),
        rule(fact, rf"{singular}[^€]*?de\s*{NUM}\s*€\s*(?:à|-|–)\s*{NUM}\s*€", _range),
    ]


def _rent_rules(fact: str, singular: str) -> list[ExtractionRule]:
    return [
        rule(fact, rf"loyer[^€]*?{singular}[^€]*?{PCT}\s*€\s*(?:/\s*)?m²", _decimal),
        rule(fact, rf"{singular}[^€]*?loyer[^€]*?{PCT}\s*€", _decimal),
    ]


PRICE_ESTIMATE_RULES: list[ExtractionRule] = [
    *_price_rules("apartment_price", "appartement", "appartements"),
    *_price_rules("house_price", "maison", "maisons"),
    *_range_rules("apartment_range", "appartement"),
    *_range_rules("house_range", "maison"),
    *_rent_rules("apartment_rent", "appartement"),
    *_rent_rules("house_rent", "maison"),
]


def _category_estimate(facts: dict[str, Any], price_fact: str, range_fact: str) -> CategoryEstimate | None:
    if price_fact not in facts:
        return None
    range_min, range_max = facts.get(range_fact, (None, None))
    return CategoryEstimate(price_per_sqm=facts[price_fact], range_min=range_min, range_max=range_max)


def parse_price_estimate(text: str) -> PriceEstimate:
    """Texte de page MeilleursAgents → PriceEstimate (champs absents à None)."""
    facts = extract_facts(text, PRICE_ESTIMATE_RULES)
    rent = None
    if "apartment_rent" in facts or "house_rent" in facts:
        rent = RentEstimate(apartment=facts.get("apartment_rent"), house=facts.get("house_rent"))
    return PriceEstimate(
        apartment=_category_estimate(facts, "apartment_price", "apartment_range"),
        house=_category_estimate(facts, "house_price", "house_range"),
        rent=rent,
    )


# ---------------------------------------------------------------------------
# 2. L'Internaute : parc de logements (données INSEE)
# ---------------------------------------------------------------------------

ROOM_BUCKETS: list[tuple[str, str]] = [
    ("1 pièce", r"1\s*pièce"),
    ("2 pièces", r"2\s*pièces"),
    ("3 pièces", r"3\s*pièces"),
    ("4 pièces", r"4\s*pièces"),
    ("5+ pièces", r"(?:5|plus\s*de\s*4)\s*pièces"),
]


def _room_rules() -> list[ExtractionRule]:
    rules: list[ExtractionRule] = []
    for key, words in ROOM_BUCKETS:
        # « 1 pièce : X % » accepte aussi le pluriel
        label = words.removesuffix("s") + "s?"
        rules.append(rule(f"rooms:{key}", rf"{PCT}{INLINE}%[^%\n]*?(?:de\s*)?{words}", _decimal))
        rules.append(rule(f"rooms:{key}", rf"{label}\s*[:\s]*{PCT}\s*%", _decimal))
    return rules


def _count_rules(fact: str, label: str) -> list[ExtractionRule]:
    return [
        rule(fact, rf"{COUNT}{INLINE}{label}", _count),
        rule(fact, rf"{label}\s*[:\s]*{COUNT}", _count),
    ]


def _share_rules(fact: str, label: str, article: str) -> list[ExtractionRule]:
    return [
        rule(fact, rf"{PCT}{INLINE}%{INLINE}(?:{article})?{label}", _decimal),
        rule(fact, rf"{label}\s*[:\s]*{PCT}\s*%", _decimal),
    ]


DEMOGRAPHIC_RULES: list[ExtractionRule] = [
    rule("total_dwellings", rf"{COUNT}{INLINE}logements?\s*(?:au\s+total|en\s*\d{{4}}|dans)", _count),
    rule("total_dwellings", rf"nombre\s*(?:de\s*)?logements?\s*[:\s]*{COUNT}", _count),
    rule("total_dwellings", rf"parc\s*(?:de\s*)?logements?\s*[:\s]*{COUNT}", _count),
    *_count_rules("primary_residences", r"résidences?\s*principales?"),
    *_count_rules("secondary_residences", r"résidences?\s*secondaires?"),
    *_count_rules("vacant_dwellings", r"logements?\s*vacants?"),
    *_share_rules("houses_percent", "maisons", r"de\s*"),
    *_share_rules("apartments_percent", "appartements", r"d['’]?\s*"),
    *_room_rules(),
    *_share_rules("owners_percent", "propriétaires", r"de\s*"),
    *_share_rules("renters_percent", "locataires", r"de\s*"),
    rule("construction_period", rf"construits?\s*(avant|après)\s*(\d{{4}})[^%]*?{PCT}\s*%", _construction),
]


def parse_demographics(text: str) -> DemographicProfile:
    """Texte de page L'Internaute → DemographicProfile (champs absents à None)."""
    facts = extract_facts(text, DEMOGRAPHIC_RULES)

    housing_types = None
    if "houses_percent" in facts or "apartments_percent" in facts:
        housing_types = HousingTypeShare(
            houses=facts.get("houses_percent"),
            apartments=facts.get("apartments_percent"),
        )

    rooms = {
        key: facts[f"rooms:{key}"]
        for key, _ in ROOM_BUCKETS
        if f"rooms:{key}" in facts
    }

    return DemographicProfile(
        total_dwellings=facts.get("total_dwellings"),
        primary_residences=facts.get("primary_residences"),
        secondary_residences=facts.get("secondary_residences"),
        vacant_dwellings=facts.get("vacant_dwellings"),
        housing_types=housing_types,
        room_distribution=rooms or None,
        owners_percent=facts.get("owners_percent"),
        renters_percent=facts.get("renters_percent"),
        construction_period=facts.get("construction_period"),
    )
