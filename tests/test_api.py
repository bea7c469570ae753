"""Tests for the HTTP API: dashboard chat, uploads, health and the Telegram webhook."""

import pytest
from fastapi.testclient import TestClient

from ragbot.api import create_app
from ragbot.chat.chat_orchestrator import FALLBACK_ERROR_MESSAGE, RESET_CONFIRMATION

from conftest import server_error

UPLOAD_TEXT = " ".join(f"policy{i}" for i in range(200)).encode()


@pytest.fixture
def client(container):
    with TestClient(create_app(container, warm_up=False)) as test_client:
        yield test_client


class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["uptime"].startswith("0h 0m")

    def test_ready_is_503_without_warm_up(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    def test_ready_after_warm_up(self, container):
        with TestClient(create_app(container, warm_up=True)) as client:
            response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["services"] == {"azure_openai": True, "azure_search": True, "search_index": True}

    def test_configuration_status(self, client):
        assert client.get("/test-azure").json() == {
            "azureOpenAI": "configured",
            "azureSearch": "configured",
            "status": "ready",
        }


class TestChatEndpoints:
    """Test the dashboard chat API."""

    def test_chat_returns_reply_and_cited_sources(self, client, fake_search):
        fake_search.documents = [
            {"id": "refund-policy-1", "title": "Refund Policy", "url": "https://example.com/refund",
             "content": "We accept returns within 30 days of purchase."},
        ]

        response = client.post("/chat", json={"message": "What is the refund policy?"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["response"] == "Answer [#1]"
        assert [s["title"] for s in body["sources"]] == ["Refund Policy"]
        assert body["sources"][0]["source"] == "azure"

    @pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "   "}])
    def test_chat_requires_message(self, client, payload):
        response = client.post("/chat", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}

    def test_chat_upstream_failure(self, client, fake_openai):
        fake_openai.chat.completions.always_fail = server_error

        response = client.post("/chat", json={"message": "hello"})

        assert response.status_code == 503
        assert response.json() == {"success": False, "error": FALLBACK_ERROR_MESSAGE}

    def test_reset_clears_dashboard_session(self, client, container):
        client.post("/chat", json={"message": "hello"})
        assert container.history.count("dashboard") == 2

        response = client.post("/chat/reset")

        assert response.json() == {"success": True, "message": RESET_CONFIRMATION}
        assert container.history.count("dashboard") == 0

    def test_sessions_are_isolated(self, client, container):
        client.post("/chat", json={"message": "hello", "session_id": "tab-1"})
        client.post("/chat/reset", json={"session_id": "tab-2"})

        assert container.history.count("tab-1") == 2


class TestDocumentEndpoints:
    """Test upload, listing and deletion of documents."""

    def test_upload_list_delete(self, client, container):
        response = client.post("/upload", files={"file": ("policy.txt", UPLOAD_TEXT, "text/plain")})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "File uploaded successfully"
        document = body["document"]
        assert document["filename"] == "policy.txt"
        assert document["embedded_chunk_count"] == document["chunk_count"] > 0

        listed = client.get("/documents").json()["documents"]
        assert [d["id"] for d in listed] == [document["id"]]

        response = client.delete(f"/documents/{document['id']}")
        assert response.json() == {"message": "Document deleted successfully"}
        assert client.get("/documents").json() == {"documents": []}
        assert container.storage.list_ids() == []

    def test_uploaded_document_is_retrievable(self, client, fake_openai):
        client.post("/upload", files={"file": ("policy.txt", UPLOAD_TEXT, "text/plain")})

        client.post("/chat", json={"message": " ".join(f"policy{i}" for i in range(5, 25))})

        sources_message = fake_openai.chat.completions.calls[-1]["messages"][2]["content"]
        assert "[#1] policy.txt" in sources_message
        assert "Source: uploaded://" in sources_message

    def test_upload_without_file(self, client):
        response = client.post("/upload")

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_upload_unsupported_type(self, client):
        response = client.post("/upload", files={"file": ("photo.png", b"\x89PNG\r\n", "image/png")})

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["error"]

    def test_upload_too_large(self, client, app_config):
        payload = b"a" * (app_config.ingestion.max_upload_bytes + 10)

        response = client.post("/upload", files={"file": ("big.txt", payload, "text/plain")})

        assert response.status_code == 413
        assert response.json() == {"error": "File too large"}

    def test_upload_without_text(self, client):
        response = client.post("/upload", files={"file": ("blank.txt", b"   \n\t  ", "text/plain")})

        assert response.status_code == 400
        assert "No text content" in response.json()["error"]

    def test_delete_unknown_document(self, client):
        response = client.delete("/documents/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Document not found"}


class TestTelegramWebhook:

    def test_webhook_registered_on_startup(self, client, fake_transport):
        assert fake_transport.webhooks == ["https://bot.example.com/webhook"]

    def test_update_dispatched_to_handler(self, client, fake_transport):
        update = {"update_id": 5, "message": {"message_id": 1, "chat": {"id": 99}, "text": "hello"}}

        response = client.post("/webhook", json=update)

        assert response.json() == {"ok": True}
        assert fake_transport.texts == ["Answer [#1]"]

    def test_invalid_json_ignored(self, client, fake_transport):
        response = client.post("/webhook", content=b"not json", headers={"content-type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"ok": False}
        assert fake_transport.messages == []
