import pytest
import requests

from linear_time.core.errors import IssueFetchError, MissingCredential
from linear_time.core.linear_client import LinearAPI


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _api(responses, token="lin_api_test"):
    return LinearAPI(token, token_provider=lambda: None, session=FakeSession(responses))


def test_missing_token_raises_for_every_query():
    api = LinearAPI(token_provider=lambda: None, session=FakeSession([]))
    for call in (api.fetch_issues, api.fetch_cycles, api.fetch_users, api.viewer):
        with pytest.raises(MissingCredential):
            call()
    assert api.session.calls == []


def test_token_provider_is_used_when_no_explicit_token():
    session = FakeSession([FakeResponse({"data": {"cycles": {"nodes": []}}})])
    api = LinearAPI(token_provider=lambda: "lin_api_saved", session=session)
    assert api.fetch_cycles() == []
    assert session.calls[0]["headers"]["Authorization"] == "lin_api_saved"


def test_fetch_issues_sends_query_and_excludes_canceled():
    node = {"id": "i1", "title": "T", "identifier": "ENG-1", "state": {"name": "Todo", "color": "#fff"}}
    api = _api([FakeResponse({"data": {"issues": {"nodes": [node]}}})])
    assert api.fetch_issues() == [node]
    call = api.session.calls[0]
    assert call["url"] == "https://api.linear.app/graphql"
    assert call["headers"]["Authorization"] == "lin_api_test"
    assert call["json"]["variables"] == {"excludedState": "Canceled"}
    assert "issues(" in call["json"]["query"]


def test_fetch_users_keeps_active_only():
    users = [
        {"id": "u1", "name": "Ana", "email": "ana@x.io", "active": True},
        {"id": "u2", "name": "Old", "email": "old@x.io", "active": False},
    ]
    api = _api([FakeResponse({"data": {"users": {"nodes": users}}})])
    assert [u["id"] for u in api.fetch_users()] == ["u1"]


def test_results_are_cached_until_cleared():
    payload = {"data": {"cycles": {"nodes": [{"id": "c1", "number": 1}]}}}
    api = _api([FakeResponse(payload), FakeResponse(payload)])
    api.fetch_cycles()
    api.fetch_cycles()
    assert len(api.session.calls) == 1
    api.clear_cache()
    api.fetch_cycles()
    assert len(api.session.calls) == 2


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=401, text="Unauthorized"),
        FakeResponse({"errors": [{"message": "Authentication required"}]}),
        FakeResponse(None, text="<html>"),
        requests.ConnectionError("boom"),
    ],
)
def test_failures_raise_issue_fetch_error(response):
    api = _api([response])
    with pytest.raises(IssueFetchError):
        api.fetch_issues()


def test_zero_cache_ttl_always_refetches():
    payload = {"data": {"cycles": {"nodes": []}}}
    api = _api([FakeResponse(payload), FakeResponse(payload)])
    api.cache_ttl = 0
    assert api.cache_ttl == 0.0
    api.fetch_cycles()
    api.fetch_cycles()
    assert len(api.session.calls) == 2
    api.cache_ttl = -5
    assert api.cache_ttl == 0.0
