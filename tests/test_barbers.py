"""Tests for barber management, the leaderboard and barber self-service."""

from datetime import timedelta

from conftest import auth_headers

from barbershop.auth import token_for_admin
from barbershop.core import month_key, utcnow
from barbershop.models import BarberStats


def _barber_payload(**overrides):
    payload = {
        "username": "alexr",
        "email": "Alex@Barbershop.test",
        "password": "secret1",
        "name": "Alex Rodriguez",
    }
    payload.update(overrides)
    return payload


class TestBarberManagement:
    def test_create(self, client, session, owner_headers):
        response = client.post("/admin/barbers", json=_barber_payload(), headers=owner_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "barber"
        assert data["email"] == "alex@barbershop.test"
        assert "password_hash" not in data

        stats = session.get(BarberStats, 1)
        assert stats.barber_id == data["id"]

        login = client.post("/auth/login", data={"username": "alex@barbershop.test", "password": "secret1"})
        assert login.status_code == 200

    def test_duplicate_username(self, client, barber, owner_headers):
        response = client.post("/admin/barbers", json=_barber_payload(username=barber.username),
                               headers=owner_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == "Username already taken"

    def test_duplicate_email(self, client, barber, owner_headers):
        response = client.post("/admin/barbers", json=_barber_payload(email=barber.email), headers=owner_headers)
        assert response.status_code == 409

    def test_list_hides_inactive(self, client, make_staff, owner_headers):
        make_staff(role="barber", name="Active Barber")
        make_staff(role="barber", name="Gone Barber", active=False)
        make_staff(role="receptionist")

        names = [b["name"] for b in client.get("/admin/barbers", headers=owner_headers).json()]
        assert names == ["Active Barber"]

        everyone = client.get("/admin/barbers?include_inactive=true", headers=owner_headers).json()
        assert len(everyone) == 2

    def test_get_non_barber_is_404(self, client, receptionist, owner_headers):
        assert client.get(f"/admin/barbers/{receptionist.id}", headers=owner_headers).status_code == 404

    def test_update(self, client, barber, owner_headers):
        response = client.put(f"/admin/barbers/{barber.id}", json={"name": "Michael Johnson"},
                              headers=owner_headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Michael Johnson"
        assert response.json()["username"] == barber.username

    def test_update_password(self, client, barber, owner_headers):
        client.put(f"/admin/barbers/{barber.id}", json={"password": "changed1"}, headers=owner_headers)
        login = client.post("/auth/login", data={"username": barber.email, "password": "changed1"})
        assert login.status_code == 200

    def test_deactivate(self, client, session, barber, owner_headers):
        barber.scanner_enabled = True
        session.add(barber)
        session.commit()

        response = client.delete(f"/admin/barbers/{barber.id}", headers=owner_headers)
        assert response.status_code == 200

        session.refresh(barber)
        assert barber.active is False
        assert barber.scanner_enabled is False

    def test_receptionist_can_manage(self, client, receptionist_headers):
        assert client.get("/admin/barbers", headers=receptionist_headers).status_code == 200

    def test_barber_cannot_manage(self, client, barber_headers):
        assert client.get("/admin/barbers", headers=barber_headers).status_code == 403


class TestScannerToggles:
    def test_single_toggle(self, client, barber, owner_headers):
        response = client.put(f"/admin/barbers/{barber.id}/scanner-toggle", json={"enabled": True},
                              headers=owner_headers)
        assert response.json()["scanner_enabled"] is True

    def test_bulk_toggle_all(self, client, session, make_staff, owner_headers):
        first = make_staff(role="barber")
        second = make_staff(role="barber")
        make_staff(role="barber", active=False)

        data = client.put("/admin/barbers/bulk-scanner-toggle", json={"enabled": True}, headers=owner_headers).json()
        assert data == {"updated": 2, "enabled": True}

        session.refresh(first)
        session.refresh(second)
        assert first.scanner_enabled and second.scanner_enabled

    def test_bulk_toggle_subset(self, client, make_staff, owner_headers):
        first = make_staff(role="barber")
        make_staff(role="barber")
        data = client.put(
            "/admin/barbers/bulk-scanner-toggle",
            json={"enabled": True, "barber_ids": [first.id]},
            headers=owner_headers,
        ).json()
        assert data["updated"] == 1


class TestLeaderboard:
    def _stats(self, session, barber, visits, revenue, clients):
        session.add(BarberStats(
            barber_id=barber.id,
            total_visits=visits,
            total_revenue=revenue,
            unique_clients=list(range(clients)),
            work_days_since_joining=10,
            monthly_stats=[{"month": month_key(utcnow()), "visits_count": 1, "revenue": 25, "unique_clients": 1}],
        ))

    def test_ranking(self, client, session, make_staff, owner_headers):
        mike = make_staff(role="barber", name="Mike")
        alex = make_staff(role="barber", name="Alex")
        self._stats(session, mike, visits=10, revenue=250, clients=3)
        self._stats(session, alex, visits=20, revenue=200, clients=8)
        session.commit()

        data = client.get("/admin/leaderboard", headers=owner_headers).json()
        assert [e["name"] for e in data["leaderboard"]] == ["Alex", "Mike"]
        assert data["leaderboard"][0]["rank"] == 1
        assert data["leaderboard"][0]["efficiency"] == 20.0

        data = client.get("/admin/leaderboard?sort_by=revenue", headers=owner_headers).json()
        assert [e["name"] for e in data["leaderboard"]] == ["Mike", "Alex"]

    def test_this_month(self, client, session, barber, owner_headers):
        self._stats(session, barber, visits=10, revenue=250, clients=3)
        session.commit()

        entry = client.get("/admin/leaderboard?time_period=this-month", headers=owner_headers).json()["leaderboard"][0]
        assert entry["stats"]["total_visits"] == 1
        assert entry["stats"]["total_revenue"] == 25

    def test_barber_stats_endpoint(self, client, barber, owner_headers):
        data = client.get(f"/admin/barbers/{barber.id}/stats", headers=owner_headers).json()
        assert data["barber"]["id"] == barber.id
        assert data["stats"]["total_visits"] == 0
        assert data["stats"]["current_month"]["month"] == month_key(utcnow())


class TestBarberSelfService:
    def test_profile(self, client, barber, barber_headers):
        assert client.get("/barber/profile", headers=barber_headers).json()["name"] == "Mike Johnson"

    def test_update_profile(self, client, barber_headers):
        response = client.put("/barber/profile", json={"phone_number": "555-3030"}, headers=barber_headers)
        assert response.json()["phone_number"] == "555-3030"

    def test_stats_created_lazily(self, client, barber_headers):
        data = client.get("/barber/stats", headers=barber_headers).json()
        assert data["total_visits"] == 0
        assert data["unique_clients"] == 0

    def test_admin_not_a_barber(self, client, owner_headers):
        assert client.get("/barber/profile", headers=owner_headers).status_code == 403

    def test_new_barber_token(self, client, make_staff):
        newcomer = make_staff(role="barber", join_date=utcnow() - timedelta(days=1))
        headers = auth_headers(token_for_admin(newcomer))
        assert client.get("/barber/stats", headers=headers).status_code == 200
