"""Conversions numériques tolérantes et slug d'URL"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any

_SPACES_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def round_half_up(value: float) -> int:
    """Arrondi à l'entier le plus proche, x.5 → x+1 (pas d'arrondi bancaire)."""
    return math.floor(value + 0.5)


def parse_float(value: Any) -> float:
    """Nombre décimal, 0.0 si absent, invalide ou négatif."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def parse_int(value: Any) -> int:
    """Entier (partie entière), 0 si absent ou invalide."""
    return int(parse_float(value))


def parse_price(text: str | None) -> int | None:
    """« 4 500 » → 4500. None si le texte n'est pas un entier après nettoyage."""
    if text is None:
        return None
    raw = _SPACES_RE.sub("", text)
    try:
        return int(raw)
    except ValueError:
        return None


def parse_percent(text: str | None) -> float | None:
    """« 12,5 » → 12.5. None si le texte n'est pas un nombre."""
    if text is None:
        return None
    raw = _SPACES_RE.sub("", text).replace(",", ".")
    try:
        return float(raw)
    except ValueError:
        return None


def slugify(name: str) -> str:
    """Nom de commune → segment d'URL (« Saint-Étienne » → « saint-etienne »)."""
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub("-", stripped).strip("-")
