"""WebSocket : résultats tardifs d'une analyse en temps réel."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from secteur.api.v1.analyses import replay_settled
from secteur.api.websocket.manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/analyses/{session_id}")
async def analysis_updates(websocket: WebSocket, session_id: str) -> None:
    """Transmet les messages ``category_update`` de la session.

    Les catégories déjà réglées à la connexion sont renvoyées d'abord ;
    l'abonnement précède ce rattrapage pour ne rien perdre entre les deux.
    """
    await manager.connect(session_id, websocket)
    try:
        replayed = await replay_settled(session_id, websocket)
        if replayed:
            logger.debug("ws rattrapage: session=%s catégories=%d", session_id, replayed)
        while True:
            await websocket.receive_text()  # keep-alive
    except WebSocketDisconnect:
        manager.disconnect(session_id, websocket)
