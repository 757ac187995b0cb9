"""
RR Nagar Backend — /api/categories Endpoint Tests
===================================================
"""

import pytest

from marketplace.services.gemini_translator import get_translation_service


class TestListCategories:

    @pytest.mark.asyncio
    async def test_empty_table(self, test_client, translator):
        response = await test_client.get("/api/categories")
        assert response.status_code == 200
        assert response.json() == []
        assert translator.batch_calls == []

    @pytest.mark.asyncio
    async def test_ordered_by_id_with_translated_names(self, test_client, seeded):
        response = await test_client.get("/api/categories")
        body = response.json()
        assert [c["name"] for c in body] == ["Groceries", "Dairy"]
        assert [c["nameKannada"] for c in body] == ["kn:Groceries", "kn:Dairy"]
        assert body[0]["icon"] == "🛒"

    @pytest.mark.asyncio
    async def test_translation_failure_falls_back_to_names(
        self, app, test_client, seeded, failing_translator
    ):
        app.dependency_overrides[get_translation_service] = lambda: failing_translator
        response = await test_client.get("/api/categories")
        assert response.status_code == 200
        assert [c["nameKannada"] for c in response.json()] == ["Groceries", "Dairy"]


class TestCreateCategory:

    @pytest.mark.asyncio
    async def test_create_and_list(self, test_client):
        response = await test_client.post("/api/categories", json={"name": "Dairy", "icon": "🥛"})
        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Dairy"
        assert "createdAt" in created

        listing = await test_client.get("/api/categories")
        assert listing.json()[0]["nameKannada"] == "kn:Dairy"

    @pytest.mark.asyncio
    async def test_untranslatable_listing_keeps_exact_name(
        self, app, test_client, failing_translator
    ):
        await test_client.post("/api/categories", json={"name": "Dairy"})
        app.dependency_overrides[get_translation_service] = lambda: failing_translator
        listing = await test_client.get("/api/categories")
        assert listing.json()[0]["nameKannada"] == "Dairy"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": 12}, {"name": None}])
    async def test_invalid_names_are_400_and_not_stored(self, test_client, payload):
        response = await test_client.post("/api/categories", json=payload)
        assert response.status_code == 400
        assert response.json()["message"] == "Valid category name required"

        listing = await test_client.get("/api/categories")
        assert listing.json() == []

    @pytest.mark.asyncio
    async def test_duplicate_names_allowed(self, test_client):
        first = await test_client.post("/api/categories", json={"name": "Fruits"})
        second = await test_client.post("/api/categories", json={"name": "Fruits"})
        assert first.status_code == second.status_code == 201
        assert first.json()["id"] != second.json()["id"]

    @pytest.mark.asyncio
    async def test_form_encoded_body_is_accepted(self, test_client):
        response = await test_client.post("/api/categories", data={"name": "Dairy", "icon": "🥛"})
        assert response.status_code == 201
        assert response.json()["name"] == "Dairy"
        assert response.json()["icon"] == "🥛"

    @pytest.mark.asyncio
    async def test_missing_body_is_400_with_envelope(self, test_client):
        response = await test_client.post("/api/categories")
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Valid category name required"
        assert "requestId" in body

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content", [b'"Dairy"', b"name=Dairy", b"{not json"], ids=["json-string", "raw-text", "broken-json"]
    )
    async def test_non_object_json_is_400(self, test_client, content):
        response = await test_client.post(
            "/api/categories", content=content, headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Valid category name required"

    @pytest.mark.asyncio
    async def test_non_string_icon_is_400(self, test_client):
        response = await test_client.post("/api/categories", json={"name": "Dairy", "icon": 5})
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "icon"

        listing = await test_client.get("/api/categories")
        assert listing.json() == []
