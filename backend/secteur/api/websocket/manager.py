"""Abonnés WebSocket aux catégories tardives, groupés par session d'analyse."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass
class ConnectionManager:
    """Diffuse les messages ``category_update`` aux clients abonnés à une session."""

    _connections: dict[str, list[WebSocket]] = field(default_factory=dict)

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.setdefault(session_id, []).append(websocket)
        logger.debug("ws abonné: session=%s (%d)", session_id, self.watchers(session_id))

    def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        conns = self._connections.get(session_id)
        if conns is None:
            return
        if websocket in conns:
            conns.remove(websocket)
        if not conns:
            del self._connections[session_id]
        logger.debug("ws désabonné: session=%s", session_id)

    def watchers(self, session_id: str) -> int:
        """Nombre de clients abonnés ; 0 permet d'éviter l'encodage d'un message."""
        return len(self._connections.get(session_id, []))

    async def broadcast(self, session_id: str, message: dict[str, Any]) -> int:
        """Envoie ``message`` aux abonnés de la session ; renvoie le nombre de réceptions.

        Un client dont l'envoi échoue est désabonné.
        """
        conns = self._connections.get(session_id)
        if conns is None:
            return 0
        delivered = 0
        stale: list[WebSocket] = []
        for ws in list(conns):
            try:
                await ws.send_json(message)
                delivered += 1
            except Exception:
                stale.append(ws)
        for ws in stale:
            logger.warning("ws injoignable, désabonné: session=%s", session_id)
            self.disconnect(session_id, ws)
        return delivered


manager = ConnectionManager()
