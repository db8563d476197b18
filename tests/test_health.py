import pytest
from fastapi.testclient import TestClient
from app.main import app
from app.core.errors import UpstreamError

@pytest.fixture()
def client():
    return TestClient(app)

class MockES:
    def __init__(self, line=None, exc=None):
        self._line = line
        self._exc = exc

    def get_status(self):
        if self._exc:
            raise self._exc
        return self._line

def test_root_and_headers(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert r.headers.get("x-ons-search-api") == "Python FastAPI"
    assert r.headers.get("x-ons-search-api-version") == "2025"

@pytest.mark.parametrize("colour", ["green", "yellow"])
def test_health_ok(client, monkeypatch, colour):
    import app.api.routers.health as r_health
    line = f"1654012345 15:52:25 ons-cluster {colour} 3 3 20 10 0 0 0 0 - 100.0%\n"
    monkeypatch.setattr(r_health, "es", MockES(line=line), raising=True)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "OK"}

def test_health_red(client, monkeypatch):
    import app.api.routers.health as r_health
    line = "1654012345 15:52:25 ons-cluster red 3 3 20 10 0 0 4 0 - 80.0%\n"
    monkeypatch.setattr(r_health, "es", MockES(line=line), raising=True)
    r = client.get("/health")
    assert r.status_code == 500
    assert r.json() == {"status": "error", "error": line}

def test_health_unreachable(client, monkeypatch):
    import app.api.routers.health as r_health
    monkeypatch.setattr(r_health, "es", MockES(exc=UpstreamError(cause=ConnectionError("refused"))), raising=True)
    r = client.get("/health")
    assert r.status_code == 500
    assert r.json() == {"status": "error", "error": "refused"}

@pytest.mark.parametrize("line,status", [("1 green 3 3 0 0", 200), ("1 red 3 3 0 0", 500)])
def test_health_short_lines(client, monkeypatch, line, status):
    import app.api.routers.health as r_health
    monkeypatch.setattr(r_health, "es", MockES(line=line), raising=True)
    r = client.get("/health")
    assert r.status_code == status
    expected = {"status": "OK"} if status == 200 else {"status": "error", "error": line}
    assert r.json() == expected
