"""Integration tests for the FastAPI application.

The app runs against in-memory storage and a fake generator, so these
tests exercise routing, payload shapes, curator authorization and error
mapping without touching the network.
"""

from __future__ import annotations

import json

from shouyutong import __version__
from shouyutong.core.errors import GenerationError
from shouyutong.core.models import SignEntry


class TestConfigEndpoint:
    def test_config(self, test_client):
        response = test_client.get("/api/config")
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == __version__
        assert data["suggestedWords"] == ["你好", "谢谢", "北京", "学习"]


class TestLookup:
    def test_generated_lookup(self, test_client, fake_generator):
        response = test_client.get("/api/lookup", params={"word": "你好"})

        assert response.status_code == 200
        data = response.json()
        assert data["provenance"] == "generated"
        assert data["entry"]["word"] == "你好"
        assert data["entry"]["handShape"] == "open palm"
        assert data["imageUrl"] is None
        assert fake_generator.text_calls == ["你好"]
        assert fake_generator.image_calls == []

    def test_stored_lookup(self, test_client, fake_generator, stored_entry):
        data = test_client.get("/api/lookup", params={"word": "谢谢"}).json()

        assert data["provenance"] == "store"
        assert data["entry"]["handShape"] == "thumb up"
        assert fake_generator.text_calls == []

    def test_empty_word(self, test_client):
        response = test_client.get("/api/lookup", params={"word": "  "})
        assert response.status_code == 400

    def test_generation_failure(self, test_client, fake_generator):
        fake_generator.text_error = GenerationError("provider down")
        response = test_client.get("/api/lookup", params={"word": "你好"})
        assert response.status_code == 502
        assert "provider down" in response.json()["detail"]

    def test_generate_image(self, test_client, png_data_url):
        response = test_client.post("/api/lookup/image", json={"word": "你好", "movement": "wave"})
        assert response.status_code == 200
        assert response.json() == {"word": "你好", "imageUrl": png_data_url}

    def test_generate_image_failure(self, test_client, fake_generator):
        fake_generator.image_error = GenerationError("busy")
        response = test_client.post("/api/lookup/image", json={"word": "你好"})
        assert response.status_code == 502

    def test_upload(self, test_client, png_bytes):
        response = test_client.post("/api/images/upload", content=png_bytes)
        assert response.status_code == 200
        assert response.json()["imageUrl"].startswith("data:image/png;base64,")

    def test_upload_rejects_non_image(self, test_client):
        response = test_client.post("/api/images/upload", content=b"text")
        assert response.status_code == 400

    def test_upload_rejects_oversized_image(self, test_client, oversized_png_bytes):
        response = test_client.post("/api/images/upload", content=oversized_png_bytes)
        assert response.status_code == 400


class TestAuth:
    def test_login_logout(self, test_client):
        response = test_client.post("/api/auth/login", json={"username": "curator", "password": "secret"})
        assert response.status_code == 200
        headers = {"X-Curator-Token": response.json()["token"]}

        assert test_client.get("/api/auth/status", headers=headers).json() == {"authenticated": True}
        assert test_client.post("/api/auth/logout", headers=headers).json() == {"success": True}
        assert test_client.get("/api/auth/status", headers=headers).json() == {"authenticated": False}

    def test_bad_credentials(self, test_client):
        response = test_client.post("/api/auth/login", json={"username": "curator", "password": "nope"})
        assert response.status_code == 401

    def test_status_without_token(self, test_client):
        assert test_client.get("/api/auth/status").json() == {"authenticated": False}


class TestLibrary:
    def test_commit_requires_curator(self, test_client, store):
        response = test_client.post("/api/library", json={"entry": {"word": "你好"}})
        assert response.status_code == 401
        assert store.get_library() == {}

    def test_commit(self, test_client, curator_headers, store, png_data_url):
        payload = {
            "entry": {"word": "你好", "handShape": "open palm", "movement": "wave"},
            "imageUrl": png_data_url,
        }
        response = test_client.post("/api/library", json=payload, headers=curator_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["word"] == "你好"
        assert data["imageUrl"] == png_data_url
        assert data["updatedAt"] > 0
        assert store.get_word("你好").hand_shape == "open palm"

    def test_commit_then_lookup_uses_store(self, test_client, curator_headers, fake_generator):
        test_client.post("/api/library", json={"entry": {"word": "北京"}}, headers=curator_headers)

        data = test_client.get("/api/lookup", params={"word": "北京"}).json()

        assert data["provenance"] == "store"
        assert fake_generator.text_calls == []

    def test_commit_empty_word(self, test_client, curator_headers):
        response = test_client.post("/api/library", json={"entry": {"word": " "}}, headers=curator_headers)
        assert response.status_code == 400

    def test_commit_bad_image(self, test_client, curator_headers, store):
        payload = {"entry": {"word": "你好"}, "imageUrl": "https://example.com/x.png"}
        response = test_client.post("/api/library", json=payload, headers=curator_headers)
        assert response.status_code == 400
        assert store.get_library() == {}

    def test_list_most_recent_first(self, test_client, store, monkeypatch):
        for stamp, word in [(1, "一"), (2, "二")]:
            monkeypatch.setattr("shouyutong.core.store._now_ms", lambda stamp=stamp: stamp)
            store.save_word(SignEntry(word=word))

        data = test_client.get("/api/library").json()

        assert data["total"] == 2
        assert [e["word"] for e in data["entries"]] == ["二", "一"]

    def test_delete(self, test_client, curator_headers, stored_entry, store):
        response = test_client.delete("/api/library/谢谢", headers=curator_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted": "谢谢"}
        assert store.get_word("谢谢") is None

    def test_delete_missing(self, test_client, curator_headers):
        assert test_client.delete("/api/library/不存在", headers=curator_headers).status_code == 404

    def test_delete_requires_curator(self, test_client, stored_entry, store):
        assert test_client.delete("/api/library/谢谢").status_code == 401
        assert store.get_word("谢谢") is not None

    def test_clear(self, test_client, curator_headers, stored_entry, store):
        assert test_client.delete("/api/library", headers=curator_headers).json() == {"success": True}
        assert store.get_library() == {}

    def test_clear_requires_curator(self, test_client, stored_entry, store):
        assert test_client.delete("/api/library").status_code == 401
        assert store.get_library() != {}


class TestExportImport:
    def test_export(self, test_client, stored_entry):
        response = test_client.get("/api/library/export")

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert "shouyutong_library_" in response.headers["content-disposition"]
        assert json.loads(response.content)["谢谢"]["handShape"] == "thumb up"

    def test_import_round_trip(self, test_client, curator_headers, stored_entry, store):
        snapshot = test_client.get("/api/library/export").content
        store.clear_all()

        response = test_client.post("/api/library/import", content=snapshot, headers=curator_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "total": 1}
        assert store.get_word("谢谢") == stored_entry

    def test_import_garbage(self, test_client, curator_headers, stored_entry, store):
        response = test_client.post("/api/library/import", content=b"garbage", headers=curator_headers)
        assert response.status_code == 400
        assert store.get_word("谢谢") == stored_entry

    def test_import_requires_curator(self, test_client, store):
        response = test_client.post("/api/library/import", content=b"{}")
        assert response.status_code == 401
