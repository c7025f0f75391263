"""
Admin platform settings and their effect on payment fees
"""
from decimal import Decimal

from conftest import login
from domestiq.models import PlatformSetting
from domestiq.services import FeeService


class TestSettingsEndpoint:
    def test_admin_rate_change_applies_to_next_payment(self, client, admin_user, client_user, booking, gateway):
        login(client, admin_user)
        response = client.put("/api/v1/settings", json={"platform_fee_rate": "0.15"})
        assert response.status_code == 200
        assert response.get_json()["settings"]["platform_fee_rate"] == "0.15"

        login(client, client_user)
        paid = client.post("/api/v1/payments/initialize", json={"booking_id": booking.id})

        assert paid.status_code == 200
        assert paid.get_json()["breakdown"] == {
            "worker_amount": 500.0,
            "platform_fee": 75.0,
            "total_amount": 575.0,
            "fee_percent": 0.15,
        }

    def test_get_reports_config_defaults(self, client, admin_user):
        login(client, admin_user)

        settings = client.get("/api/v1/settings").get_json()["settings"]

        assert settings == {"platform_fee_rate": "0.1", "platform_fee_min": None, "platform_fee_max": None}

    def test_invalid_value_writes_nothing(self, client, admin_user, app):
        login(client, admin_user)

        response = client.put("/api/v1/settings", json={"platform_fee_min": "15", "platform_fee_rate": "-0.2"})

        assert response.status_code == 400
        assert PlatformSetting.query.count() == 0
        assert FeeService.current_rate() == Decimal("0.1")

    def test_unknown_or_empty_payload(self, client, admin_user):
        login(client, admin_user)

        assert client.put("/api/v1/settings", json={"commission_pct": 5}).status_code == 400
        assert client.put("/api/v1/settings", json={}).status_code == 400

    def test_admin_only(self, client, client_user, worker_user):
        assert client.put("/api/v1/settings", json={"platform_fee_rate": "0"}).status_code == 401

        for user in (client_user, worker_user):
            login(client, user)
            assert client.put("/api/v1/settings", json={"platform_fee_rate": "0"}).status_code == 403
            assert client.get("/api/v1/settings").status_code == 403
