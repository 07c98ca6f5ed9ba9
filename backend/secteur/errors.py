"""Exceptions du pipeline d'analyse de secteur.

Seule ``CommuneNotFound`` remonte jusqu'à l'appelant : les échecs de source
sont absorbés par l'orchestrateur et deviennent des résultats « indisponible ».
"""


class SecteurError(Exception):
    """Base de toutes les erreurs du package."""


class CommuneNotFound(SecteurError):
    """La commune n'a pas pu être résolue (absente ou service injoignable)."""


class SourceUnavailable(SecteurError):
    """Une source n'a fourni aucune donnée exploitable."""


class MalformedUpstream(SourceUnavailable):
    """L'enveloppe renvoyée par la source n'a pas la forme attendue."""


class AllRelaysFailed(SourceUnavailable):
    """Tous les proxies CORS ont échoué pour une URL cible."""


class SessionSuperseded(SecteurError):
    """La session visée n'est plus la session d'analyse courante."""
