"""App-level tests: wiring, reference data, health, and the provider client."""
import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

import backend
import history
import routes
import translator
from models import SUPPORTED_LANGUAGES


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(history, "DB_PATH", tmp_path / "wordmatch-app.db")
    with TestClient(backend.app) as test_client:
        yield test_client


async def _reachable(transport=None):
    return True


async def _unreachable(transport=None):
    return False


def test_languages(client):
    resp = client.get("/api/languages")
    assert resp.status_code == 200
    assert resp.json() == SUPPORTED_LANGUAGES


def test_startup_creates_store(client):
    resp = client.post("/api/store", json={"input": "yes", "output": "oui", "lang_in": "en", "lang_out": "fr"})
    assert resp.status_code == 200
    assert client.get("/api/history").json()[0]["output"] == "oui"


def test_health_ok(client, monkeypatch):
    monkeypatch.setattr(routes, "check_provider_connectivity", _reachable)
    client.get("/api/languages")
    data = client.get("/api/health").json()
    assert data["status"] == "ok"
    assert data["store"]["reachable"] is True
    assert data["games"]["active"] == 0
    assert data["latency"]["count"] >= 1


def test_health_degraded_without_provider(client, monkeypatch):
    monkeypatch.setattr(routes, "check_provider_connectivity", _unreachable)
    data = client.get("/api/health").json()
    assert data["status"] == "degraded"
    assert data["provider"]["reachable"] is False


def test_game_uses_stored_history(client):
    for text, translated in [("red", "rouge"), ("blue", "bleu"), ("green", "vert")]:
        client.post("/api/store", json={"input": text, "output": translated, "lang_in": "en", "lang_out": "fr"})
    data = client.post("/api/game").json()
    assert data["total"] == 6
    assert {c["face"] for c in data["cards"]} == {"red", "rouge", "blue", "bleu", "green", "vert"}
    client.delete(f"/api/game/{data['game_id']}")


# --- MyMemory client ---


def run_translate(handler, text="Hello", lang_in="en", lang_out="fr"):
    transport = httpx.MockTransport(handler)
    return asyncio.run(translator.translate_text(text, lang_in, lang_out, transport=transport))


def test_translate_text_builds_langpair():
    seen = {}

    def handler(request):
        seen["q"] = request.url.params["q"]
        seen["langpair"] = request.url.params["langpair"]
        return httpx.Response(200, json={"responseData": {"translatedText": "Bonjour"}})

    assert run_translate(handler) == "Bonjour"
    assert seen == {"q": "Hello", "langpair": "en|fr"}


def test_translate_text_distinct_languages_error():
    def handler(request):
        return httpx.Response(200, json={"responseData": {"translatedText": translator.DISTINCT_LANGUAGES_ERROR}})

    with pytest.raises(translator.TranslationInputError):
        run_translate(handler, lang_out="en")


@pytest.mark.parametrize("response", [
    httpx.Response(503, text="unavailable"),
    httpx.Response(200, text="<html>"),
    httpx.Response(200, json={"responseStatus": 403}),
])
def test_translate_text_provider_errors(response):
    with pytest.raises(translator.TranslationError) as exc:
        run_translate(lambda request: response)
    assert not isinstance(exc.value, translator.TranslationInputError)


def test_translate_text_unreachable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(translator.TranslationError):
        run_translate(handler)
