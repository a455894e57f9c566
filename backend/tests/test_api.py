"""
Tests degli endpoint HTTP (httpx.AsyncClient sull'app FastAPI).
"""

import uuid
from decimal import Decimal

import pytest


REPAIR_BODY = {
    "customer": {"name": "Mario Rossi", "phone": "333 123 4567"},
    "device": {"brand": "Apple", "model": "iPhone 13", "serial_number": "F17XK2"},
    "description": "Schermo rotto",
    "estimated_cost": "89,90",
}


async def create_repair(client, **overrides) -> dict:
    response = await client.post("/api/v1/repairs/", json={**REPAIR_BODY, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


async def create_item(client, quantity: int = 10) -> dict:
    response = await client.post(
        "/api/v1/inventory/",
        json={"name": "Display iPhone 13", "quantity": quantity, "price": "59.90"},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestSystem:

    async def test_health(self, client):
        """Test health check."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "testing"


class TestPricingApi:

    async def test_calculate(self, client):
        """Test ricalcolo dallo scenario di riferimento."""
        response = await client.post(
            "/api/v1/pricing/calculate",
            json={
                "active_field": "cost_ht",
                "values": {"cost_ht": "100", "margin_percent": "30", "tva_rate": "20", "shipping_cost": "10"},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["price_ttc"]) == Decimal("156.00")
        assert Decimal(body["total_amount"]) == Decimal("166.00")
        assert body["tva_mode"] == "standard"

    async def test_calculate_margin_mode(self, client):
        """Test regime IVA sul margine."""
        response = await client.post(
            "/api/v1/pricing/calculate",
            json={
                "active_field": "tva_rate",
                "values": {"cost_ht": "100", "margin_percent": "30", "tva_rate": "20", "tva_mode": "margin"},
            },
        )

        assert Decimal(response.json()["price_ttc"]) == Decimal("136.00")

    async def test_unknown_field(self, client):
        """Test campo attivo inesistente: errore di validazione."""
        response = await client.post("/api/v1/pricing/calculate", json={"active_field": "discount"})

        assert response.status_code == 422

    async def test_out_of_range_value(self, client):
        """Test valore oltre il limite: 422 invece di errore interno."""
        response = await client.post(
            "/api/v1/pricing/calculate",
            json={"active_field": "cost_ht", "values": {"cost_ht": "1e27"}},
        )

        assert response.status_code == 422

    async def test_settings(self, client):
        """Test configurazione esposta."""
        response = await client.get("/api/v1/pricing/settings")

        body = response.json()
        assert response.status_code == 200
        assert Decimal(body["default_tva_rate"]) == Decimal("20")
        assert body["tva_modes"] == ["standard", "margin"]


class TestRepairsApi:

    async def test_create_and_read(self, client):
        """Test accettazione e dettaglio."""
        created = await create_repair(client)

        response = await client.get(f"/api/v1/repairs/{created['id']}")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "pending"
        assert Decimal(body["estimated_cost"]) == Decimal("89.90")
        assert body["device"]["serial_number"] == "F17XK2"
        assert body["device"]["customer"]["phone"] == "3331234567"

    async def test_blank_customer_name(self, client):
        """Test nome cliente vuoto: 422 con error_code."""
        response = await client.post(
            "/api/v1/repairs/",
            json={**REPAIR_BODY, "customer": {"name": "  "}},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "BUSINESS_VALIDATION_ERROR"

    async def test_status_flow(self, client):
        """Test avanzamento, completamento e archiviazione."""
        repair = await create_repair(client)
        url = f"/api/v1/repairs/{repair['id']}"

        advanced = await client.post(f"{url}/advance")
        completed = await client.post(f"{url}/complete", json={"notes": "Display sostituito"})
        delivered = await client.patch(f"{url}/status", json={"status": "delivered"})
        conflict = await client.post(f"{url}/advance")

        assert advanced.json()["status"] == "in_progress"
        assert completed.json()["completed_at"] is not None
        assert completed.json()["description"].endswith("Note di completamento: Display sostituito")
        assert delivered.json()["archived_at"] is not None
        assert conflict.status_code == 409

    async def test_invalid_status(self, client):
        """Test stato inesistente."""
        repair = await create_repair(client)

        response = await client.patch(f"/api/v1/repairs/{repair['id']}/status", json={"status": "lost"})

        assert response.status_code == 422

    async def test_archived_list(self, client):
        """Test lista attive e archiviate."""
        repair = await create_repair(client)
        await client.post(f"/api/v1/repairs/{repair['id']}/archive")

        active = await client.get("/api/v1/repairs/")
        archived = await client.get("/api/v1/repairs/", params={"archived": "true"})

        assert active.json()["total"] == 0
        assert [r["id"] for r in archived.json()["items"]] == [repair["id"]]

    async def test_cancel(self, client):
        """Test annullamento con motivo."""
        repair = await create_repair(client)

        response = await client.post(f"/api/v1/repairs/{repair['id']}/cancel", json={"reason": "Preventivo rifiutato"})

        assert response.json()["status"] == "cancelled"
        assert response.json()["cancel_reason"] == "Preventivo rifiutato"
        assert response.json()["description"] == "Schermo rotto"

    async def test_negative_cost(self, client):
        """Test costo negativo."""
        repair = await create_repair(client)

        response = await client.patch(f"/api/v1/repairs/{repair['id']}/cost", json={"estimated_cost": "-5"})

        assert response.status_code == 422

    async def test_missing_repair(self, client):
        """Test scheda inesistente: 404 con formato errore standard."""
        response = await client.get(f"/api/v1/repairs/{uuid.uuid4()}")

        body = response.json()
        assert response.status_code == 404
        assert body["error_code"] == "RESOURCE_NOT_FOUND"
        assert body["extra"]["entity"] == "RepairTicket"


class TestRepairPartsApi:

    async def test_reserve_release_and_delete(self, client):
        """Test riserva, rimozione ed eliminazione con ripristino giacenze."""
        repair = await create_repair(client)
        item = await create_item(client, quantity=10)
        parts_url = f"/api/v1/repairs/{repair['id']}/parts"

        first = await client.post(parts_url, json={"inventory_item_id": item["id"], "quantity": 3})
        second = await client.post(parts_url, json={"inventory_item_id": item["id"], "quantity": 2})
        assert first.status_code == 201
        assert first.json()["item_name"] == "Display iPhone 13"
        stock = await client.get(f"/api/v1/inventory/{item['id']}")
        assert stock.json()["quantity"] == 5

        removed = await client.delete(f"{parts_url}/{first.json()['id']}")
        assert removed.status_code == 204
        listed = await client.get(parts_url)
        assert [p["id"] for p in listed.json()["items"]] == [second.json()["id"]]

        deleted = await client.delete(f"/api/v1/repairs/{repair['id']}")
        assert deleted.status_code == 204
        stock = await client.get(f"/api/v1/inventory/{item['id']}")
        assert stock.json()["quantity"] == 10

    async def test_insufficient_stock(self, client):
        """Test giacenza insufficiente: 409 e giacenza invariata."""
        repair = await create_repair(client)
        item = await create_item(client, quantity=1)

        response = await client.post(
            f"/api/v1/repairs/{repair['id']}/parts",
            json={"inventory_item_id": item["id"], "quantity": 2},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "INSUFFICIENT_STOCK"
        assert response.json()["extra"]["available"] == 1
        stock = await client.get(f"/api/v1/inventory/{item['id']}")
        assert stock.json()["quantity"] == 1

    @pytest.mark.parametrize("quantity", [0, -2])
    async def test_non_positive_quantity(self, client, quantity):
        """Test quantità non positiva."""
        repair = await create_repair(client)
        item = await create_item(client)

        response = await client.post(
            f"/api/v1/repairs/{repair['id']}/parts",
            json={"inventory_item_id": item["id"], "quantity": quantity},
        )

        assert response.status_code == 422


class TestInventoryAndCustomersApi:

    async def test_low_stock(self, client):
        """Test alert scorte basse dopo una rettifica."""
        item = await create_item(client, quantity=10)

        adjusted = await client.patch(f"/api/v1/inventory/{item['id']}/quantity", json={"quantity": 2})
        low = await client.get("/api/v1/inventory/low-stock")

        assert adjusted.json()["is_low_stock"] is True
        assert [i["id"] for i in low.json()["items"]] == [item["id"]]

    async def test_customer_lifecycle(self, client):
        """Test creazione cliente, nuovo dispositivo ed eliminazione."""
        created = await client.post(
            "/api/v1/customers/",
            json={
                "name": "Giulia Bianchi",
                "email": "giulia.bianchi@officina.it",
                "devices": [{"brand": "Samsung", "model": "Galaxy S22"}],
            },
        )
        assert created.status_code == 201
        customer_id = created.json()["id"]

        device = await client.post(
            f"/api/v1/customers/{customer_id}/devices",
            json={"brand": "Apple", "model": "iPad Air"},
        )
        detail = await client.get(f"/api/v1/customers/{customer_id}")
        assert device.status_code == 201
        assert len(detail.json()["devices"]) == 2

        deleted = await client.delete(f"/api/v1/customers/{customer_id}")
        missing = await client.get(f"/api/v1/customers/{customer_id}")
        assert deleted.status_code == 204
        assert missing.status_code == 404
