"""Tables plates destinées à l'export tableur"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ExportTable:
    name: str
    headers: list[str] = field(default_factory=list)  # vide pour la feuille de synthèse
    rows: list[list[Any]] = field(default_factory=list)
