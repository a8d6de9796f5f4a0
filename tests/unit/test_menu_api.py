"""Unit tests for menu and time slot API endpoints."""
import pytest


class TestMenuAPI:
    """Test menu API endpoints."""

    @pytest.mark.asyncio
    async def test_get_menu(self, test_client, menu_items):
        response = await test_client.get("/api/menu")

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 4
        assert data["categories"] == ["Drinks", "Meals", "Snacks"]

    @pytest.mark.asyncio
    async def test_menu_filters(self, test_client, menu_items):
        response = await test_client.get("/api/menu", params={"available_only": True})
        names = [item["name"] for item in response.json()["items"]]
        assert "Cold Coffee" not in names

        response = await test_client.get("/api/menu", params={"category": "Meals"})
        data = response.json()
        assert data["categories"] == ["Meals"]
        assert all(item["type"] == "made-to-order" for item in data["items"])


class TestTimeSlotAPI:
    """Test time slot API endpoints."""

    @pytest.mark.asyncio
    async def test_list_slots(self, test_client, time_slots):
        response = await test_client.get("/api/time-slots")

        assert response.status_code == 200
        assert [s["time"] for s in response.json()] == ["12:00", "12:30", "13:00"]

    @pytest.mark.asyncio
    async def test_available_slots(self, test_client, time_slots):
        response = await test_client.get(
            "/api/time-slots/available", params={"made_to_order_units": 3}
        )

        assert response.status_code == 200
        # 12:30 holds 4: floor(4/2) + 3 > 4
        assert [s["time"] for s in response.json()] == ["12:00", "13:00"]

    @pytest.mark.asyncio
    async def test_available_slots_without_made_to_order(self, test_client, time_slots):
        response = await test_client.get("/api/time-slots/available")
        assert len(response.json()) == 3

    @pytest.mark.asyncio
    async def test_pickup_times(self, test_client):
        response = await test_client.get("/api/time-slots/pickup-times")

        assert response.status_code == 200
        times = response.json()
        assert len(times) == 8
        assert times[0]["label"].startswith("Pickup at ")

    @pytest.mark.asyncio
    async def test_staff_creates_slot(self, staff_client):
        response = await staff_client.post(
            "/api/time-slots", json={"time": "14:15", "max_orders": 12}
        )

        assert response.status_code == 201
        assert response.json()["time"] == "14:15"

    @pytest.mark.asyncio
    async def test_customer_cannot_create_slot(self, customer_client):
        response = await customer_client.post(
            "/api/time-slots", json={"time": "14:15", "max_orders": 12}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "PermissionDenied"

    @pytest.mark.asyncio
    async def test_staff_deletes_slot(self, staff_client, time_slots):
        response = await staff_client.delete(f"/api/time-slots/{time_slots[1].id}")
        assert response.status_code == 204

        response = await staff_client.get("/api/time-slots")
        assert [s["time"] for s in response.json()] == ["12:00", "13:00"]
