"""Session d'analyse : valeur immuable créée à chaque requête"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from secteur.errors import SessionSuperseded
from secteur.schemas.analysis import CategoryOutcome
from secteur.schemas.commune import Commune
from secteur.schemas.estimates import DemographicProfile, PriceEstimate
from secteur.schemas.market import Transaction
from secteur.schemas.stats import StatsBundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisSession:
    """Résultats d'une analyse de commune.

    Jamais modifiée sur place : chaque étape produit une nouvelle valeur
    (``dataclasses.replace``).
    """

    commune: Commune
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    transactions: CategoryOutcome[list[Transaction]] = field(default_factory=CategoryOutcome)
    stats: StatsBundle | None = None
    price_estimate: CategoryOutcome[PriceEstimate] = field(default_factory=CategoryOutcome)
    demographics: CategoryOutcome[DemographicProfile] = field(default_factory=CategoryOutcome)

    @property
    def transaction_list(self) -> list[Transaction]:
        return self.transactions.data or []


@dataclass
class SessionRegistry:
    """Emplacement de la session « courante ».

    Une nouvelle analyse remplace la précédente ; les résultats tardifs
    destinés à une session remplacée sont refusés.
    """

    _current: AnalysisSession | None = None

    @property
    def current(self) -> AnalysisSession | None:
        return self._current

    def activate(self, session: AnalysisSession) -> None:
        if self._current is not None and self._current.id != session.id:
            logger.debug("session %s remplacée par %s", self._current.id, session.id)
        self._current = session

    def get(self, session_id: str) -> AnalysisSession | None:
        if self._current is not None and self._current.id == session_id:
            return self._current
        return None

    def merge(self, session_id: str, **changes: Any) -> AnalysisSession:
        """Fusionne des résultats dans la session courante si elle est bien visée."""
        if self._current is None or self._current.id != session_id:
            raise SessionSuperseded(f"session {session_id} n'est plus courante")
        self._current = replace(self._current, **changes)
        return self._current
