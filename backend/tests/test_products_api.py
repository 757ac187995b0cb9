"""
RR Nagar Backend — /api/products Endpoint Tests
=================================================

What:  End-to-end behaviour through HTTP: query parsing, camelCase bodies,
       status codes, the background translation and image uploads.
How:   HTTPX AsyncClient over ASGITransport. The transport waits for the
       whole ASGI call, so background tasks have finished when a response
       is returned.
"""

from unittest.mock import patch

import pytest

from marketplace.identity import Identity
from marketplace.services.file_service import file_service
from marketplace.services.gemini_translator import get_translation_service


class TestListProducts:

    @pytest.mark.asyncio
    async def test_lists_everything_with_camel_case_keys(self, test_client, seeded):
        response = await test_client.get("/api/products")
        assert response.status_code == 200
        body = response.json()
        assert len(body) == len(seeded["products"])
        first = body[0]
        for key in ("isTemplate", "subVariety", "titleKannada", "categoryId", "supplierId", "createdAt"):
            assert key in first

    @pytest.mark.asyncio
    async def test_q_is_search_alias_and_search_wins(self, test_client, seeded):
        by_q = await test_client.get("/api/products", params={"q": "dal"})
        assert [p["id"] for p in by_q.json()] == [seeded["bob_dal"]]

        both = await test_client.get("/api/products", params={"search": "rice", "q": "dal"})
        assert [p["id"] for p in both.json()] == [seeded["alice_rice"]]

    @pytest.mark.asyncio
    async def test_category_filter(self, test_client, seeded):
        response = await test_client.get(
            "/api/products", params={"categoryId": seeded["dairy"]}
        )
        assert [p["id"] for p in response.json()] == [seeded["bob_milk"]]

    @pytest.mark.asyncio
    async def test_blank_category_is_ignored(self, test_client, seeded):
        response = await test_client.get("/api/products", params={"categoryId": ""})
        assert len(response.json()) == len(seeded["products"])

    @pytest.mark.asyncio
    async def test_malformed_category_is_400(self, test_client, seeded):
        response = await test_client.get("/api/products", params={"categoryId": "fruits"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert "requestId" in body

    @pytest.mark.asyncio
    async def test_variety_is_exact(self, test_client, seeded):
        response = await test_client.get("/api/products", params={"variety": "Toor"})
        assert [p["id"] for p in response.json()] == [seeded["bob_dal"]]
        response = await test_client.get("/api/products", params={"variety": "toor"})
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_supplier_flag_scopes_to_session_supplier(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["alice"]))
        response = await test_client.get("/api/products", params={"supplier": "true"})
        assert [p["id"] for p in response.json()] == [seeded["alice_rice"]]

    @pytest.mark.asyncio
    async def test_supplier_flag_ignored_without_supplier(self, test_client, seeded):
        response = await test_client.get("/api/products", params={"supplier": "true"})
        assert len(response.json()) == len(seeded["products"])


class TestGetProduct:

    @pytest.mark.asyncio
    async def test_detail_includes_category_and_custodians(self, test_client, seeded):
        response = await test_client.get(f"/api/products/{seeded['alice_rice']}")
        assert response.status_code == 200
        body = response.json()
        assert body["category"] == {"id": seeded["groceries"], "name": "Groceries"}
        assert [s["name"] for s in body["suppliers"]] == ["Bob Traders"]

    @pytest.mark.asyncio
    async def test_missing_is_404(self, test_client, seeded):
        response = await test_client.get("/api/products/9999")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_templates_route_is_not_an_id(self, test_client, seeded):
        response = await test_client.get("/api/products/templates/all")
        assert response.status_code == 200
        assert [p["title"] for p in response.json()] == ["Alphonso Mango"]


class TestCreateProduct:

    @pytest.mark.asyncio
    async def test_anonymous_is_401(self, test_client, seeded):
        response = await test_client.post("/api/products", data={"title": "Mango"})
        assert response.status_code == 401
        assert response.json()["message"] == "Not authenticated"

    @pytest.mark.asyncio
    async def test_customer_is_401(self, test_client, seeded, act_as):
        act_as(Identity(customer_id=1))
        response = await test_client.post("/api/products", data={"title": "Mango"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_supplier_create_then_translation(self, test_client, seeded, act_as, translator):
        act_as(Identity(supplier_id=seeded["alice"]))
        response = await test_client.post(
            "/api/products",
            data={
                "title": "Banana",
                "description": "Nendran bananas",
                "price": "45.5",
                "categoryId": str(seeded["groceries"]),
                "subVariety": "Nendran",
            },
        )
        assert response.status_code == 201
        created = response.json()
        assert created["supplierId"] == seeded["alice"]
        assert created["subVariety"] == "Nendran"
        assert created["unit"] == "piece"
        assert created["price"] == 45.5
        assert created["isTemplate"] is False

        detail = await test_client.get(f"/api/products/{created['id']}")
        assert detail.json()["titleKannada"] == "kn:Banana"
        assert detail.json()["descriptionKannada"] == "kn:Nendran bananas"
        assert "Banana" in translator.calls

    @pytest.mark.asyncio
    async def test_translation_failure_keeps_product(
        self, app, test_client, seeded, act_as, failing_translator
    ):
        app.dependency_overrides[get_translation_service] = lambda: failing_translator
        act_as(Identity(supplier_id=seeded["alice"]))

        response = await test_client.post("/api/products", data={"title": "Jackfruit"})
        assert response.status_code == 201

        detail = await test_client.get(f"/api/products/{response.json()['id']}")
        assert detail.status_code == 200
        assert detail.json()["titleKannada"] is None

    @pytest.mark.asyncio
    async def test_invalid_price_is_400(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["alice"]))
        response = await test_client.post(
            "/api/products", data={"title": "Mango", "price": "-5"}
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "price"

    @pytest.mark.asyncio
    async def test_unknown_category_is_400(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["alice"]))
        response = await test_client.post(
            "/api/products", data={"title": "Mango", "categoryId": "999"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_supplier_clones_template(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["bob"]))
        response = await test_client.post(
            "/api/products",
            data={"templateId": str(seeded["template"]), "price": "500", "title": "x"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Alphonso Mango"
        assert body["unit"] == "dozen"
        assert body["image"] == "uploads/products/mango.jpg"
        assert body["price"] == 500
        assert body["supplierId"] == seeded["bob"]

    @pytest.mark.asyncio
    async def test_admin_creates_template(self, test_client, seeded, act_as):
        act_as(Identity(admin_id=1))
        response = await test_client.post("/api/products", data={"title": "Chikoo"})
        assert response.status_code == 201
        assert response.json()["isTemplate"] is True

        templates = await test_client.get("/api/products/templates/all")
        assert [p["title"] for p in templates.json()] == ["Alphonso Mango", "Chikoo"]

    @pytest.mark.asyncio
    async def test_image_upload_is_stored_and_served(
        self, test_client, seeded, act_as, sample_image_bytes
    ):
        act_as(Identity(supplier_id=seeded["alice"]))
        with patch.object(file_service, "validate_mime_type", return_value="image/jpeg"):
            response = await test_client.post(
                "/api/products",
                data={"title": "Sapota"},
                files={"image": ("Fresh Sapota.jpg", sample_image_bytes, "image/jpeg")},
            )
        assert response.status_code == 201
        image = response.json()["image"]
        assert image.startswith("uploads/products/")
        assert image.endswith("-Fresh_Sapota.jpg")

        served = await test_client.get(f"/{image}")
        assert served.status_code == 200
        assert served.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_non_image_upload_is_400(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["alice"]))
        response = await test_client.post(
            "/api/products",
            data={"title": "Sapota"},
            files={"image": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 400


class TestDeleteProduct:

    @pytest.mark.asyncio
    async def test_owner_deletes(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["bob"]))
        response = await test_client.delete(f"/api/products/{seeded['bob_dal']}")
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        gone = await test_client.get(f"/api/products/{seeded['bob_dal']}")
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_stranger_is_403_and_product_remains(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["alice"]))
        response = await test_client.delete(f"/api/products/{seeded['bob_dal']}")
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized"

        still_there = await test_client.get(f"/api/products/{seeded['bob_dal']}")
        assert still_there.status_code == 200

    @pytest.mark.asyncio
    async def test_custodian_deletes(self, test_client, seeded, act_as):
        act_as(Identity(supplier_id=seeded["bob"]))
        response = await test_client.delete(f"/api/products/{seeded['alice_rice']}")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_admin_deletes_anything(self, test_client, seeded, act_as):
        act_as(Identity(admin_id=1))
        response = await test_client.delete(f"/api/products/{seeded['template']}")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_anonymous_is_403(self, test_client, seeded):
        response = await test_client.delete(f"/api/products/{seeded['bob_dal']}")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_is_404(self, test_client, seeded, act_as):
        act_as(Identity(admin_id=1))
        response = await test_client.delete("/api/products/9999")
        assert response.status_code == 404
