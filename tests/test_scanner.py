"""Tests for the global scanner switch and barber scanning."""

from datetime import timedelta

from barbershop import scanner
from barbershop.core import utcnow
from barbershop.models import ScannerSettings


class TestScannerSettings:
    def test_defaults_created_on_read(self, client, owner_headers):
        data = client.get("/admin/scanner-settings", headers=owner_headers).json()
        assert data["global_scanner_enabled"] is False
        assert data["auto_disable_hours"] == 2
        assert data["remaining_seconds"] is None

    def test_enable_sets_deadline(self, client, owner, owner_headers):
        data = client.put(
            "/admin/scanner-settings", json={"global_scanner_enabled": True}, headers=owner_headers
        ).json()
        assert data["global_scanner_enabled"] is True
        assert data["last_enabled_by"] == owner.name
        assert 0 < data["remaining_seconds"] <= 2 * 3600

    def test_new_hours_rearm_running_scanner(self, client, owner_headers):
        client.put("/admin/scanner-settings", json={"global_scanner_enabled": True}, headers=owner_headers)
        data = client.put("/admin/scanner-settings", json={"auto_disable_hours": 5}, headers=owner_headers).json()
        assert data["auto_disable_hours"] == 5
        assert data["remaining_seconds"] > 4 * 3600

    def test_disable_clears_deadline(self, client, owner_headers):
        client.put("/admin/scanner-settings", json={"global_scanner_enabled": True}, headers=owner_headers)
        data = client.put(
            "/admin/scanner-settings", json={"global_scanner_enabled": False}, headers=owner_headers
        ).json()
        assert data["disabled_until"] is None

    def test_hours_out_of_range(self, client, owner_headers):
        response = client.put("/admin/scanner-settings", json={"auto_disable_hours": 0}, headers=owner_headers)
        assert response.status_code == 422

    def test_barber_cannot_change(self, client, barber_headers):
        response = client.put("/admin/scanner-settings", json={"global_scanner_enabled": True},
                              headers=barber_headers)
        assert response.status_code == 403


class TestAutoDisable:
    def test_expired_window_switches_off(self, session):
        settings = ScannerSettings(global_scanner_enabled=True, disabled_until=utcnow() - timedelta(minutes=1))
        session.add(settings)
        session.commit()

        assert scanner.apply_auto_disable(session, settings) is True
        assert settings.global_scanner_enabled is False
        assert settings.disabled_until is None

    def test_running_window_untouched(self, session, scanner_on):
        assert scanner.apply_auto_disable(session, scanner_on) is False
        assert scanner_on.global_scanner_enabled is True

    def test_endpoint(self, client, session, owner_headers):
        session.add(ScannerSettings(global_scanner_enabled=True, disabled_until=utcnow() - timedelta(hours=1)))
        session.commit()

        data = client.post("/admin/scanner-settings/auto-disable", headers=owner_headers).json()
        assert data["disabled"] is True
        assert data["current_status"]["global_scanner_enabled"] is False


class TestBarberScanning:
    def test_status_needs_both_switches(self, client, session, barber, barber_headers, scanner_on):
        data = client.get("/barber/scanner-status", headers=barber_headers).json()
        assert data["effective_scanner_enabled"] is True

        barber.scanner_enabled = False
        session.add(barber)
        session.commit()
        data = client.get("/barber/scanner-status", headers=barber_headers).json()
        assert data["global_scanner_enabled"] is True
        assert data["effective_scanner_enabled"] is False

    def test_scan_client(self, client, customer, barber_headers, scanner_on):
        response = client.get(f"/barber/scan/{customer.client_code}", headers=barber_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["client"]["client_code"] == customer.client_code
        assert data["loyalty_status"]["client_id"] == customer.id

    def test_scan_blocked_when_disabled(self, client, customer, barber_headers):
        response = client.get(f"/barber/scan/{customer.client_code}", headers=barber_headers)
        assert response.status_code == 403

    def test_scan_unknown_code(self, client, barber_headers, scanner_on):
        assert client.get("/barber/scan/C99999999", headers=barber_headers).status_code == 404
