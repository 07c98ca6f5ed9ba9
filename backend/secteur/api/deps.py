import httpx
from fastapi import Request


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Client HTTP partagé, créé au démarrage de l'application."""
    return request.app.state.http_client
