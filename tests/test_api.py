"""Unit tests for the Whisper Tree concept API.

Tests cover:
- Request validation (400 responses)
- Search, FAQ, template and concept endpoints
- Error envelopes for Notion failures
"""

import asyncio
import signal

import pytest
import uvicorn
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from server import api
from server.api import ConceptServer, app, get_content_service
from services.content_service import ContentService

SENTENCE = "Every treehouse we build starts with a walk around the tree."


class TestConceptAPI:
    """Test suite for the public API endpoints."""

    @pytest.fixture
    def service(self, service_config, fake_notion):
        return ContentService(service_config, client=fake_notion)

    @pytest.fixture
    def client(self, service):
        app.dependency_overrides[get_content_service] = lambda: service
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_search_requires_query(self, client):
        for payload in ({}, {"query": ""}, {"query": 42}):
            response = client.post("/api/search", json=payload)
            assert response.status_code == 400
            assert response.json()["error"] == "Query parameter is required and must be a string"

    def test_search_returns_ranked_documents(self, client, fake_notion):
        fake_notion.add_page("faq-db", "f1", "Treehouse heights", "Most sit three metres up.")
        fake_notion.add_page("template-db", "t1", "Treehouse", "A classic.")

        response = client.post("/api/search", json={"query": "Treehouse"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["query"] == "Treehouse"
        assert data["count"] == 2
        assert data["results"][0] == {"type": "template", "title": "Treehouse", "content": "A classic.", "relevance": 110}
        assert data["results"][1]["type"] == "faq"

    def test_search_failure_returns_error_envelope(self, client, service):
        with patch.object(service, "search_content", AsyncMock(side_effect=RuntimeError("boom"))):
            response = client.post("/api/search", json={"query": "decks"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to search Notion content",
            "message": "boom"
        }

    def test_faqs_endpoint(self, client, fake_notion):
        fake_notion.add_page("faq-db", "f1", "Do you build in winter?", "Yes, all year.", prop="Question")

        response = client.get("/api/faqs")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "faqs": [{"type": "faq", "title": "Do you build in winter?", "content": "Yes, all year."}],
            "count": 1
        }

    def test_random_template(self, client, fake_notion):
        fake_notion.add_page("template-db", "t1", "Forest Hideaway", "Two levels.")

        response = client.get("/api/template/random")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "template": {"type": "template", "title": "Forest Hideaway", "content": "Two levels."}
        }

    def test_random_template_not_found(self, client):
        response = client.get("/api/template/random")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "No templates found"}

    def test_concept_requires_user_input(self, client):
        response = client.post("/api/concept/generate", json={"messages": []})

        assert response.status_code == 400
        assert response.json()["error"] == "userInput parameter is required and must be a string"

    def test_concept_generation(self, client, fake_notion):
        fake_notion.add_page(
            "faq-db", "f1", "Treehouse design",
            f"{SENTENCE} Then we sketch platforms that let the branches keep moving freely."
        )

        response = client.post(
            "/api/concept/generate",
            json={"userInput": "Treehouse with a slide", "messages": [{"role": "user", "text": "hi"}]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["concept"].startswith("Hello, I'm Paul Cameron.\n\n")
        assert '"Treehouse with a slide"' in data["concept"]
        assert SENTENCE in data["concept"]
        # Title search for the whole phrase finds nothing
        assert data["sources"] == []

    def test_concept_sources_from_search(self, client, fake_notion):
        fake_notion.add_page("knowledge-db", "k1", "Cedar", "Cedar weathers to silver.")

        response = client.post("/api/concept/generate", json={"userInput": "Cedar"})

        assert response.status_code == 200
        assert response.json()["sources"] == [{"type": "knowledge", "title": "Cedar"}]

    def test_concept_with_empty_snapshot_uses_generic_text(self, client):
        response = client.post("/api/concept/generate", json={"userInput": "a hammock"})

        assert response.status_code == 200
        assert response.json()["concept"].startswith('Based on your wish for "a hammock", I envision')


def test_uninitialized_service_is_reported():
    client = TestClient(app)
    response = client.get("/api/faqs")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Content service not initialized"}


def test_unknown_route_uses_error_envelope():
    client = TestClient(app)
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found"}


def test_termination_signal_stops_auto_refresh(service_config, fake_notion, monkeypatch):
    service = ContentService(service_config, client=fake_notion)
    monkeypatch.setattr(api, "content_service", service)

    async def scenario():
        await service.start()
        running_before = service.auto_refresh_running
        server = ConceptServer(uvicorn.Config(app))
        server.handle_exit(signal.SIGTERM, None)
        await asyncio.sleep(0.01)
        running_after = service.auto_refresh_running
        await service.close()
        return running_before, running_after, server.should_exit

    running_before, running_after, should_exit = asyncio.run(scenario())

    assert running_before is True
    assert running_after is False
    assert should_exit is True
