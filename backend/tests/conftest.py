from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from secteur.api.deps import get_http_client
from secteur.api.v1 import analyses as analyses_api
from secteur.main import app
from secteur.pipeline.state import SessionRegistry
from secteur.pipeline.tools.geo_api import parse_commune
from secteur.schemas.commune import Commune

PARIS = {
    "nom": "Paris",
    "code": "75056",
    "codesPostaux": ["75001", "75002"],
    "population": 2133111,
    "surface": 10540,
    "departement": {"code": "75", "nom": "Paris"},
    "region": {"code": "11", "nom": "Île-de-France"},
}


@dataclass
class Route:
    fragment: str
    status: int = 200
    json: Any = None
    text: str | None = None
    error: type[httpx.HTTPError] | None = None


@dataclass
class FakeUpstream:
    """Faux Internet : chaque requête est routée selon un fragment de son URL décodée.

    Les routes sont testées dans l'ordre d'ajout ; sans correspondance → 404.
    """

    routes: list[Route] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def add(
        self,
        fragment: str,
        *,
        status: int = 200,
        json: Any = None,
        text: str | None = None,
        error: type[httpx.HTTPError] | None = None,
    ) -> FakeUpstream:
        self.routes.append(Route(fragment, status, json, text, error))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = unquote(str(request.url))
        self.calls.append(url)
        for route in self.routes:
            if route.fragment not in url:
                continue
            if route.error is not None:
                raise route.error("connexion impossible", request=request)
            if route.json is not None:
                return httpx.Response(route.status, json=route.json)
            return httpx.Response(route.status, text=route.text or "")
        return httpx.Response(404, text="not found")

    def count(self, fragment: str) -> int:
        return sum(1 for url in self.calls if fragment in url)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def paris_payload() -> dict[str, Any]:
    return dict(PARIS)


@pytest.fixture
def paris() -> Commune:
    return parse_commune(PARIS)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture
async def http(upstream: FakeUpstream) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with upstream.client() as client:
        yield client


@pytest_asyncio.fixture
async def client(
    http: httpx.AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[AsyncClient, None]:
    # Registre neuf pour chaque test
    monkeypatch.setattr(analyses_api, "registry", SessionRegistry())
    app.dependency_overrides[get_http_client] = lambda: http

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
