"""Tests for the HTTP surface: content read, manual update, CORS.

Run with: pytest tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from promptrelay.api import content
from promptrelay.api.deps import get_content_cache, get_orchestrator
from promptrelay.config import Settings, get_settings
from promptrelay.main import app
from promptrelay.utils.errors import (
    ConfigurationError,
    EmptyResponseError,
    InvocationError,
)

UPDATE_TOKEN = "s3cret-token"

CORS_EXPECTED = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST, OPTIONS",
    "access-control-allow-headers": "Authorization, Content-Type",
}


class FailingCache:
    async def get(self, key):
        raise RuntimeError("store unavailable")

    async def put(self, key, text):
        raise RuntimeError("store unavailable")


@pytest.fixture
def settings():
    return Settings(_env_file=None, update_token=UPDATE_TOKEN, schedule_enabled=False)


@pytest.fixture
def client(settings, cache, make_orchestrator):
    """TestClient wired to an in-memory cache and a scripted orchestrator.

    Tests set ``client.state["outcomes"]`` before calling /update.
    """
    state = {}

    def orchestrator_override():
        orchestrator, _, _ = make_orchestrator(state.get("outcomes", []))
        return orchestrator

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_content_cache] = lambda: cache
    app.dependency_overrides[get_orchestrator] = orchestrator_override
    content.limiter.reset()

    test_client = TestClient(app)
    test_client.state = state
    yield test_client

    app.dependency_overrides.clear()


def assert_cors(response):
    for name, value in CORS_EXPECTED.items():
        assert response.headers.get(name) == value


def auth(token=UPDATE_TOKEN):
    return {"Authorization": f"Bearer {token}"}


# ============================================
# GET /
# ============================================


class TestReadContent:
    def test_empty_cache_returns_placeholder(self, client):
        response = client.get("/")

        assert response.status_code == 503
        assert response.text == content.PLACEHOLDER_MESSAGE + "\n"
        assert_cors(response)

    @pytest.mark.asyncio
    async def test_cached_text_with_single_trailing_newline(self, client, cache):
        await cache.put("generated_text", "A quiet line.")

        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "A quiet line.\n"
        assert response.headers["content-type"] == "text/plain; charset=utf-8"
        assert_cors(response)

    def test_cache_read_failure(self, client):
        app.dependency_overrides[get_content_cache] = lambda: FailingCache()

        response = client.get("/")

        assert response.status_code == 500
        assert "store unavailable" in response.text
        assert_cors(response)

    def test_cache_backend_unavailable(self, client):
        def unavailable_cache():
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

        app.dependency_overrides[get_content_cache] = unavailable_cache

        response = client.get("/")

        assert response.status_code == 500
        assert "SUPABASE_URL" in response.text
        assert_cors(response)


# ============================================
# POST /update
# ============================================


class TestManualUpdate:
    def test_missing_authorization(self, client, cache):
        response = client.post("/update")

        assert response.status_code == 401
        assert cache.puts == []
        assert_cors(response)

    def test_non_bearer_authorization(self, client, cache):
        response = client.post("/update", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401
        assert cache.puts == []

    def test_wrong_token(self, client, cache):
        response = client.post("/update", headers=auth("guess"))

        assert response.status_code == 403
        assert cache.puts == []

    def test_server_token_unset(self, client, settings):
        settings.update_token = None

        response = client.post("/update", headers=auth())

        assert response.status_code == 500

    def test_wrong_method(self, client):
        response = client.get("/update")

        assert response.status_code == 405
        assert_cors(response)

    def test_successful_update(self, client, cache):
        client.state["outcomes"] = [
            InvocationError("Too Many Requests", status_code=429),
            "  Fresh line.  ",
        ]

        response = client.post("/update", headers=auth())

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Text content updated successfully.",
            "model_used": "FALLBACK",
            "new_content": "Fresh line.",
        }
        assert cache.puts == [("generated_text", "Fresh line.")]
        assert_cors(response)

        read_back = client.get("/")
        assert read_back.text == "Fresh line.\n"

    def test_failed_update(self, client, cache):
        client.state["outcomes"] = [EmptyResponseError("content_filter")] * 5

        response = client.post("/update", headers=auth())

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"].startswith("Failed to update:")
        assert cache.puts == []
        assert_cors(response)

    def test_rate_limited_after_budget(self, client):
        limit = int(content.settings.update_rate_limit.split("/")[0])
        client.state["outcomes"] = ["Fresh line."]

        responses = [client.post("/update", headers=auth()) for _ in range(limit + 1)]

        assert [r.status_code for r in responses[:limit]] == [200] * limit
        assert responses[-1].status_code == 429
        assert_cors(responses[-1])


# ============================================
# Routing and CORS
# ============================================


class TestRouting:
    @pytest.mark.parametrize("path", ["/", "/update", "/anything"])
    def test_preflight(self, client, path):
        response = client.options(path)

        assert response.status_code == 204
        assert response.content == b""
        assert_cors(response)

    def test_unknown_path(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        assert_cors(response)
