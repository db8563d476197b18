import json
import os
from pathlib import Path

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

from app.core.errors import DecodeError, UpstreamError
from app.main import app

# read .env from repo root
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(ENV_PATH, override=False)


@pytest.fixture()
def client():
    os.environ.setdefault("PORT", "8000")
    return TestClient(app)


# ----------------------- helpers -----------------------


class MockES:
    """Records multi-search calls and returns a canned body or raises."""

    def __init__(self, *, ret=None, exc=None):
        self._ret = ret
        self._exc = exc
        self.calls = []

    def multi_search(self, index, body):
        self.calls.append((index, body))
        if self._exc:
            raise self._exc
        return self._ret


SEARCH_RESPONSE = {
    "responses": [
        {
            "took": 5,
            "hits": {
                "total": {"value": 1, "relation": "eq"},
                "hits": [{"_source": {"type": "bulletin", "uri": "/economy/cpi", "title": "CPI"}}],
            },
        },
        {
            "took": 2,
            "hits": {"total": {"value": 1}, "hits": []},
            "aggregations": {"docCounts": {"buckets": [{"key": "bulletin", "doc_count": 1}]}},
        },
    ]
}


@pytest.fixture()
def mock_es(monkeypatch):
    import app.lib.search_utils as su

    stub = MockES(ret=SEARCH_RESPONSE)
    monkeypatch.setattr(su, "es", stub, raising=True)
    return stub


# ----------------------- GET /search -----------------------


def test_limit_above_max_is_rejected_before_elasticsearch(client, mock_es):
    r = client.get("/search", params={"limit": "1001"})
    assert r.status_code == 400
    assert r.text == "Invalid limit parameter"
    assert r.headers["content-type"].startswith("text/plain")
    assert mock_es.calls == []


@pytest.mark.parametrize(
    "params,message",
    [
        ({"offset": "-1"}, "Invalid offset parameter"),
        ({"limit": "--5"}, "Invalid limit parameter"),
        ({"offset": "\u00b2"}, "Invalid offset parameter"),
        ({"sort": "popularity"}, "Invalid sort parameter"),
        ({"releasedAfter": "2020-13-01"}, "Invalid releasedAfter parameter"),
        ({"releasedBefore": "01/01/2020"}, "Invalid releasedBefore parameter"),
        ({"query": "everything"}, "Invalid query parameter"),
        ({"aggField": "title"}, "Invalid aggField parameter"),
    ],
)
def test_invalid_parameters(client, mock_es, params, message):
    r = client.get("/search", params=params)
    assert r.status_code == 400
    assert r.text == message


def test_search_transforms_response(client, mock_es):
    r = client.get("/search", params={"q": "cpi"})
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/json;charset=utf-8"
    body = r.json()
    assert body["count"] == 1
    assert body["took"] == 7
    assert body["items"][0]["uri"] == "/economy/cpi"
    assert body["content_types"] == [{"type": "bulletin", "count": 1}]

    index, sent = mock_es.calls[0]
    assert index == "ons"
    lines = sent.strip("\n").split("\n")
    assert len(lines) == 4
    assert json.loads(lines[1])["suggest"]["search_suggest"]["text"] == "cpi"


def test_term_is_an_alias_of_q(client, mock_es):
    client.get("/search", params={"term": "gdp"})
    _, sent = mock_es.calls[0]
    assert '"gdp"' in sent


def test_raw_returns_elasticsearch_response(client, mock_es):
    r = client.get("/search", params={"q": "cpi", "raw": "true"})
    assert r.status_code == 200
    assert r.json() == SEARCH_RESPONSE


def test_content_type_and_sub_queries(client, mock_es):
    client.get("/search", params={"content_type": "bulletin,article", "query": ["content"]})
    _, sent = mock_es.calls[0]
    lines = sent.strip("\n").split("\n")
    assert len(lines) == 2
    content = json.loads(lines[1])
    assert content["query"]["bool"]["filter"][0] == {"terms": {"type": ["bulletin", "article"]}}


@pytest.mark.parametrize(
    "exc,message",
    [
        (UpstreamError(cause=ConnectionError("refused")), "Failed to run search query"),
        (DecodeError(), "Failed to process search query"),
    ],
)
def test_elasticsearch_failures(client, monkeypatch, exc, message):
    import app.lib.search_utils as su

    monkeypatch.setattr(su, "es", MockES(exc=exc), raising=True)
    r = client.get("/search", params={"q": "cpi"})
    assert r.status_code == 500
    assert r.text == message


def test_non_json_body_is_a_decode_error(client, monkeypatch):
    import app.lib.search_utils as su

    monkeypatch.setattr(su, "es", MockES(ret=b"<html>"), raising=True)
    r = client.get("/search")
    assert r.status_code == 500
    assert r.text == "Failed to process search query"


def test_empty_responses(client, monkeypatch):
    import app.lib.search_utils as su

    monkeypatch.setattr(su, "es", MockES(ret={"responses": []}), raising=True)
    r = client.get("/search")
    assert r.status_code == 500
    assert r.text == "Failed to process search query"


# ----------------------- POST /search -----------------------


class MockIndexES:
    def __init__(self, exc=None):
        self.created = []
        self._exc = exc

    def create_index(self, name, body):
        if self._exc:
            raise self._exc
        self.created.append((name, body))


def test_create_index(client, monkeypatch):
    import app.api.routers.search as r_search

    stub = MockIndexES()
    monkeypatch.setattr(r_search, "es", stub, raising=True)
    monkeypatch.setattr(r_search.settings, "SERVICE_AUTH_TOKEN", None)

    r = client.post("/search")
    assert r.status_code == 201
    name = r.json()["index_name"]
    assert name.startswith("ons") and name[3:].isdigit()
    assert stub.created[0][0] == name
    assert "mappings" in stub.created[0][1]


def test_create_index_requires_service_token(client, monkeypatch):
    import app.api.routers.search as r_search

    stub = MockIndexES()
    monkeypatch.setattr(r_search, "es", stub, raising=True)
    monkeypatch.setattr(r_search.settings, "SERVICE_AUTH_TOKEN", "s3cret")

    r = client.post("/search")
    assert r.status_code == 401
    assert stub.created == []

    r = client.post("/search", headers={"Authorization": "Bearer s3cret"})
    assert r.status_code == 201


def test_create_index_failure(client, monkeypatch):
    import app.api.routers.search as r_search

    monkeypatch.setattr(r_search, "es", MockIndexES(exc=UpstreamError(cause=RuntimeError("boom"))), raising=True)
    monkeypatch.setattr(r_search.settings, "SERVICE_AUTH_TOKEN", None)

    r = client.post("/search")
    assert r.status_code == 500
    assert r.text == "Failed to create index for search"


def test_single_response_search(client, monkeypatch):
    import app.lib.search_utils as su

    raw = {
        "responses": [
            {
                "took": 7,
                "hits": {
                    "total": 1,
                    "hits": [
                        {"_source": {"type": "bulletin", "uri": "/a", "description": {"title": "T", "summary": "S"}}}
                    ],
                },
                "aggregations": {"docCounts": {"buckets": [{"key": "bulletin", "doc_count": 1}]}},
            }
        ]
    }
    monkeypatch.setattr(su, "es", MockES(ret=raw), raising=True)

    r = client.get("/search", params={"q": "cpi", "limit": "10", "offset": "0"})
    assert r.status_code == 200
    body = r.json()
    assert (body["count"], body["took"]) == (1, 7)
    assert body["items"][0]["uri"] == "/a"
    assert body["content_types"] == [{"type": "bulletin", "count": 1}]
