from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from secteur.errors import SourceUnavailable

T = TypeVar("T")


class CategoryName(str, Enum):
    TRANSACTIONS = "transactions"
    PRICE_ESTIMATE = "price_estimate"
    DEMOGRAPHICS = "demographics"


class CategoryState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class CategoryOutcome(Generic[T]):
    """Issue d'une catégorie de données après le parcours des sources.

    ``EXHAUSTED`` n'est pas une erreur : c'est l'état « indisponible » attendu
    lorsque toutes les sources ont échoué.
    """

    state: CategoryState = CategoryState.PENDING
    data: T | None = None
    source: str | None = None
    attempts: int = 0
    error: str | None = None

    @classmethod
    def resolved(cls, data: T, source: str, attempts: int = 1) -> CategoryOutcome[T]:
        return cls(state=CategoryState.RESOLVED, data=data, source=source, attempts=attempts)

    @classmethod
    def exhausted(cls, error: str, attempts: int = 0) -> CategoryOutcome[T]:
        return cls(state=CategoryState.EXHAUSTED, error=error, attempts=attempts)

    @property
    def is_pending(self) -> bool:
        return self.state is CategoryState.PENDING

    @property
    def unavailable(self) -> bool:
        return self.state is CategoryState.EXHAUSTED

    def unwrap(self) -> T:
        """Renvoie la donnée résolue ou lève ``SourceUnavailable``."""
        if self.state is not CategoryState.RESOLVED or self.data is None:
            raise SourceUnavailable(self.error or f"catégorie non résolue ({self.state.value})")
        return self.data
