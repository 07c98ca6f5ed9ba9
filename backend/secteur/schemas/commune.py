"""Commune (municipalité) résolue via la Geo API"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Department:
    code: str
    name: str


@dataclass(frozen=True)
class Region:
    code: str
    name: str


@dataclass(frozen=True)
class Commune:
    """Commune canonique, immuable pour toute la durée d'une analyse."""

    name: str
    code: str  # code INSEE
    postal_codes: tuple[str, ...] = ()
    population: int = 0
    area_hectares: float = 0.0
    department: Department | None = None
    region: Region | None = None

    @property
    def first_postal_code(self) -> str:
        return self.postal_codes[0] if self.postal_codes else ""

    @property
    def area_km2(self) -> float:
        return self.area_hectares / 100


@dataclass(frozen=True)
class SourceLink:
    """Lien de consultation manuelle d'une source"""

    name: str
    description: str
    url: str

