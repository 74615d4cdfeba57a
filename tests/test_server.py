"""
Tests for the JSON API.
"""

import pytest

from augmentation import RetrievalAugmentor
from config import ProviderSettings
from routing import SupportOrchestrator
from server import create_app
from version import VERSION


@pytest.fixture
def scraper(make_scraper):
    scraper, _ = make_scraper()
    return scraper


@pytest.fixture
def orchestrator(store, scraper, provider_factory):
    return SupportOrchestrator(
        store,
        ProviderSettings(selection="claude", anthropic_api_key="sk-ant"),
        augmentor=RetrievalAugmentor(scraper),
        provider_factory=provider_factory,
        is_online=lambda: True,
    )


@pytest.fixture
def client(orchestrator, scraper):
    app = create_app(orchestrator=orchestrator, scraper=scraper)
    app.config["TESTING"] = True
    return app.test_client()


class TestChatEndpoint:
    def test_reply(self, client):
        response = client.post("/api/chat", json={"message": "My laptop will not boot"})
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["reply"] == "Happy to help!"
        assert data["provider"] == "claude"
        assert [m["role"] for m in data["messages"]] == ["user", "assistant"]

    @pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "  "}, {"message": 5}])
    def test_invalid_message(self, client, payload):
        response = client.post("/api/chat", json=payload)
        assert response.status_code == 400
        assert "message" in response.get_json()["error"]

    def test_non_json_body(self, client):
        response = client.post("/api/chat", data="hello", content_type="text/plain")
        assert response.status_code == 400


class TestConversationEndpoint:
    """Reading and clearing the stored conversation."""

    def test_get_and_clear(self, client):
        client.post("/api/chat", json={"message": "I need a refund for my tablet"})

        data = client.get("/api/conversation").get_json()
        assert data["size"] == 2
        assert data["summary"] == (
            "Customer has expressed interest in: tablet. "
            "Support topics mentioned: refund."
        )

        assert client.delete("/api/conversation").get_json() == {"cleared": True}
        data = client.get("/api/conversation").get_json()
        assert data == {"messages": [], "size": 0, "summary": ""}


class TestStatusEndpoints:
    def test_browsing_status(self, client):
        data = client.get("/api/browsing/status").get_json()
        assert data["enabled"] is True
        assert data["rate_limits"] == {}
        assert data["cache"] == {"size": 0, "keys": []}
        assert [d["domain"] for d in data["allowed_domains"]] == [
            "amazon.com",
            "bestbuy.com",
            "support.apple.com",
            "samsung.com",
            "wikihow.com",
        ]

    def test_browsing_disabled_without_scraper(self, orchestrator):
        client = create_app(orchestrator=orchestrator).test_client()
        assert client.get("/api/browsing/status").get_json() == {"enabled": False}

    def test_health(self, client):
        data = client.get("/health").get_json()
        assert data == {
            "status": "ok",
            "version": VERSION,
            "providers": {"selection": "claude", "configured": ["claude"]},
        }

    def test_unknown_route(self, client):
        response = client.get("/api/nothing")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Endpoint not found: /api/nothing"}

    def test_wrong_method(self, client):
        response = client.put("/api/chat")
        assert response.status_code == 405
