"""
Shared pytest fixtures for AniForge tests.

Network access is replaced by httpx.MockTransport: each test registers
canned responses keyed by host and path, and every request made is
recorded for assertions.
"""
import sys
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

# Add the current directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config import Config

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """Routes requests to canned responses and records them."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, host: str, path: str, response: Route):
        self.routes[(host, path)] = response

    def add_json(self, host: str, path: str, payload, status_code: int = 200):
        self.add(host, path, httpx.Response(status_code, json=payload))

    def add_text(self, host: str, path: str, text: str, status_code: int = 200):
        self.add(host, path, httpx.Response(status_code, text=text))

    def calls(self, host: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.url.host, request.url.path))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def config(tmp_path) -> Config:
    """Default configuration, isolated from any settings.yaml on disk."""
    cfg = Config(str(tmp_path / "settings.yaml"))
    cfg._config = cfg._get_default_config()
    return cfg


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(upstream):
    http = upstream.client()
    yield http
    http.close()
