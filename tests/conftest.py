import json
from types import SimpleNamespace

import httpx
import pytest

from msgraph_mcp.auth import GraphClient


class FakeAuth:
    def __init__(self, token="test-token"):
        self.token = token
        self.calls = 0

    async def get_token(self) -> str:
        self.calls += 1
        return self.token


class GraphRecorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self):
        self.requests = []
        self.responses = []

    def queue(self, status_code=200, json_body=None, headers=None):
        self.responses.append((status_code, json_body, headers or {}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status_code, body, headers = self.responses.pop(0) if self.responses else (200, {"value": []}, {})
        if body is None:
            return httpx.Response(status_code, headers=headers)
        return httpx.Response(status_code, json=body, headers=headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_path(self) -> str:
        """Request path as sent on the wire, without base URL prefix or query."""
        raw = self.last.url.raw_path.decode("ascii").split("?")[0]
        return raw[len("/v1.0"):]

    def last_json(self):
        return json.loads(self.last.content)


@pytest.fixture
def recorder():
    return GraphRecorder()


@pytest.fixture
def graph(recorder):
    return GraphClient(FakeAuth(), transport=httpx.MockTransport(recorder))


@pytest.fixture
def ctx(graph):
    return SimpleNamespace(
        request_context=SimpleNamespace(lifespan_context={"graph": graph})
    )
