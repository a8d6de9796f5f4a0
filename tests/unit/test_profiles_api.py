"""Unit tests for profile API endpoints."""
import pytest


class TestProfileAPI:
    @pytest.mark.asyncio
    async def test_get_own_profile(self, customer_client):
        response = await customer_client.get("/api/profile")

        assert response.status_code == 200
        assert response.json()["full_name"] == "Asha Customer"

    @pytest.mark.asyncio
    async def test_update_display_name(self, customer_client):
        response = await customer_client.patch("/api/profile", json={"full_name": "Asha K"})

        assert response.status_code == 200
        assert response.json()["full_name"] == "Asha K"
        assert response.json()["role"] == "user"

    @pytest.mark.asyncio
    async def test_staff_lists_and_promotes(self, staff_client, customer):
        response = await staff_client.get("/api/profiles")
        assert {p["id"] for p in response.json()} == {"staff-1", "user-1"}

        response = await staff_client.patch(
            f"/api/profiles/{customer.id}/role", json={"role": "admin"}
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    @pytest.mark.asyncio
    async def test_customer_cannot_list_profiles(self, customer_client):
        response = await customer_client.get("/api/profiles")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_role(self, staff_client, customer):
        response = await staff_client.patch(
            f"/api/profiles/{customer.id}/role", json={"role": "owner"}
        )
        assert response.status_code == 422


class TestResetUserOtp:
    """Test OTP reset from the user admin screen."""

    @pytest.mark.asyncio
    async def test_resets_latest_active_order(
        self, staff_client, customer_client, menu_items, time_slots
    ):
        placed = await customer_client.post(
            "/api/orders",
            json={
                "lines": [{"menu_item_id": menu_items["samosa"].id, "quantity": 2}],
                "time_slot": "12:00",
            },
        )

        response = await staff_client.post("/api/profiles/user-1/reset-otp")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == placed.json()["id"]
        assert len(data["otp"]) == 6
        assert data["otp_verified"] is False

    @pytest.mark.asyncio
    async def test_user_without_active_orders(self, staff_client, customer):
        response = await staff_client.post(f"/api/profiles/{customer.id}/reset-otp")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    @pytest.mark.asyncio
    async def test_unknown_profile(self, staff_client):
        response = await staff_client.post("/api/profiles/nobody/reset-otp")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_staff_only(self, customer_client, customer):
        response = await customer_client.post(f"/api/profiles/{customer.id}/reset-otp")
        assert response.status_code == 403
