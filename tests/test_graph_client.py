"""Tests for GraphClient against a mocked transport."""

import asyncio

import httpx
import pytest

from msgraph_mcp.auth import AuthManager


def test_request_sends_bearer_token(graph, recorder):
    recorder.queue(json_body={"displayName": "Ada"})
    data = asyncio.run(graph.get("/me"))
    assert data == {"displayName": "Ada"}
    assert recorder.last.headers["Authorization"] == "Bearer test-token"
    assert recorder.last.url.host == "graph.microsoft.com"


def test_no_content_reports_success(graph, recorder):
    recorder.queue(status_code=204)
    assert asyncio.run(graph.delete("/me/events/e1")) == {"status": "success"}


def test_http_error_raised(graph, recorder):
    recorder.queue(status_code=404, json_body={"error": {"message": "not found"}})
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(graph.get("/me/events/missing"))


def test_invoke_default_calendar(graph, recorder):
    asyncio.run(graph.invoke("list-calendar-events", id_params={"calendarId": ""}))
    assert recorder.last.method == "GET"
    assert recorder.last_path() == "/me/events"


def test_invoke_specific_calendar_item(graph, recorder):
    recorder.queue(status_code=204)
    asyncio.run(graph.invoke(
        "delete-calendar-event",
        path_params={"event-id": "event-123"},
        id_params={"calendarId": "calendar-456"},
    ))
    assert recorder.last.method == "DELETE"
    assert recorder.last_path() == "/me/calendars/calendar-456/events/event-123"


def test_invoke_keeps_encoded_identifier(graph, recorder):
    asyncio.run(graph.invoke("list-calendar-events", id_params={"calendarId": "a+b"}))
    assert recorder.last_path() == "/me/calendars/a%2Bb/events"


def test_invoke_sends_body_and_query(graph, recorder):
    recorder.queue(status_code=201, json_body={"id": "new"})
    data = asyncio.run(graph.invoke(
        "create-calendar-event",
        id_params={"calendarId": "cal"},
        params={"$select": "id"},
        json_data={"subject": "Test"},
    ))
    assert data == {"id": "new"}
    assert recorder.last.method == "POST"
    assert recorder.last.url.params["$select"] == "id"
    assert recorder.last_json() == {"subject": "Test"}


def test_invoke_unknown_alias(graph):
    with pytest.raises(KeyError):
        asyncio.run(graph.invoke("not-an-operation"))


def test_close_is_safe_twice(graph, recorder):
    async def run():
        await graph.get("/me")
        await graph.close()
        await graph.close()

    asyncio.run(run())


class StubMsalApp:
    def __init__(self, accounts=(), silent=None, client=None):
        self.accounts = list(accounts)
        self.silent = silent
        self.client = client
        self.client_scopes = None

    def get_accounts(self):
        return self.accounts

    def acquire_token_silent(self, scopes, account):
        return self.silent

    def acquire_token_for_client(self, scopes):
        self.client_scopes = scopes
        return self.client


def _manager(tmp_path, app):
    manager = AuthManager("id", "secret", "contoso", tmp_path / "cache.json")
    manager._app = app
    return manager


class TestAuthManager:
    def test_silent_token_preferred(self, tmp_path):
        app = StubMsalApp(accounts=[{"username": "ada"}], silent={"access_token": "delegated"})
        assert asyncio.run(_manager(tmp_path, app).get_token()) == "delegated"
        assert app.client_scopes is None

    def test_falls_back_to_client_credentials(self, tmp_path):
        app = StubMsalApp(client={"access_token": "app-only"})
        assert asyncio.run(_manager(tmp_path, app).get_token()) == "app-only"
        assert app.client_scopes == ["https://graph.microsoft.com/.default"]

    def test_no_token_raises(self, tmp_path):
        app = StubMsalApp(client={"error": "invalid_client", "error_description": "bad secret"})
        with pytest.raises(RuntimeError, match="bad secret"):
            asyncio.run(_manager(tmp_path, app).get_token())

    def test_authority_from_tenant(self, tmp_path):
        assert _manager(tmp_path, StubMsalApp()).authority == "https://login.microsoftonline.com/contoso"
