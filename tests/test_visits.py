"""Tests for recording and browsing visits."""

from datetime import datetime

from sqlmodel import select

from barbershop.models import BarberStats, Visit


def _record(client, customer, headers, service_ids, **extra):
    return client.post(
        f"/clients/{customer.client_code}/visits",
        json={"service_ids": service_ids, **extra},
        headers=headers,
    )


class TestRecordVisit:
    """POST /clients/{ref}/visits."""

    def test_admin_records_visit(self, client, session, customer, owner, owner_headers, make_service):
        cut = make_service(name="Regular Haircut", price=25)
        beard = make_service(name="Beard Trim", price=15, duration_minutes=15)

        response = _record(client, customer, owner_headers, [cut.id, beard.id], notes="first time")
        assert response.status_code == 201
        visit = response.json()["visit"]
        assert visit["total_price"] == 40
        assert visit["barber"] == owner.name
        assert visit["barber_id"] is None
        assert visit["visit_number"] == 1
        assert [s["name"] for s in visit["services"]] == ["Regular Haircut", "Beard Trim"]
        assert response.json()["loyalty_status"]["total_visits"] == 1

        session.refresh(customer)
        session.refresh(cut)
        assert customer.visit_count == 1
        assert customer.current_progress_visits == 1
        assert customer.loyalty_status == "active"
        assert cut.popularity_score == 1

    def test_price_override(self, client, customer, owner_headers, service):
        response = _record(client, customer, owner_headers, [service.id], total_price=10)
        assert response.json()["visit"]["total_price"] == 10

    def test_inactive_service_rejected(self, client, customer, owner_headers, make_service):
        retired = make_service(name="Old Style", is_active=False)
        assert _record(client, customer, owner_headers, [retired.id]).status_code == 422

    def test_unknown_service_rejected(self, client, customer, owner_headers):
        assert _record(client, customer, owner_headers, [999]).status_code == 422

    def test_empty_service_list_rejected(self, client, customer, owner_headers):
        assert _record(client, customer, owner_headers, []).status_code == 422

    def test_inactive_client_rejected(self, client, make_client, owner_headers, service):
        inactive = make_client(account_active=False)
        assert _record(client, inactive, owner_headers, [service.id]).status_code == 422

    def test_clients_cannot_record(self, client, customer, customer_headers, service):
        assert _record(client, customer, customer_headers, [service.id]).status_code == 403


class TestBarberVisits:
    """Visits recorded by or for a barber."""

    def test_scanner_disabled_blocks_barber(self, client, customer, barber_headers, service):
        response = _record(client, customer, barber_headers, [service.id])
        assert response.status_code == 403
        assert response.json()["detail"] == "Scanner is disabled"

    def test_barber_records_with_scanner(self, client, session, customer, barber, barber_headers, service, scanner_on):
        response = _record(client, customer, barber_headers, [service.id])
        assert response.status_code == 201
        assert response.json()["visit"]["barber_id"] == barber.id

        stats = session.exec(select(BarberStats).where(BarberStats.barber_id == barber.id)).one()
        assert stats.total_visits == 1
        assert stats.total_revenue == 25
        assert stats.unique_clients == [customer.id]
        assert stats.top_services == ["Regular Haircut"]
        assert stats.average_service_time == 30

    def test_admin_records_for_barber(self, client, session, customer, barber, owner_headers, service):
        response = _record(client, customer, owner_headers, [service.id], barber_id=barber.id)
        assert response.status_code == 201
        assert response.json()["visit"]["barber"] == barber.name

        stats = session.exec(select(BarberStats).where(BarberStats.barber_id == barber.id)).one()
        assert stats.total_visits == 1

    def test_admin_with_unknown_barber(self, client, customer, owner_headers, service):
        assert _record(client, customer, owner_headers, [service.id], barber_id=999).status_code == 422

    def test_barber_visit_list(self, client, customer, barber_headers, service, scanner_on):
        _record(client, customer, barber_headers, [service.id])
        _record(client, customer, barber_headers, [service.id])
        response = client.get("/barber/visits", headers=barber_headers)
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 2


class TestBrowseVisits:
    def _seed(self, session, customer):
        session.add(Visit(client_id=customer.id, barber="Mike Johnson", total_price=25,
                          visit_date=datetime(2024, 1, 10, 10),
                          services=[{"service_id": 1, "name": "Regular Haircut", "price": 25, "duration": 30}]))
        session.add(Visit(client_id=customer.id, barber="Alex Rodriguez", total_price=15,
                          visit_date=datetime(2024, 2, 5, 11),
                          services=[{"service_id": 2, "name": "Beard Trim", "price": 15, "duration": 15}]))
        session.add(Visit(client_id=customer.id, barber="Mike Johnson", total_price=40,
                          visit_date=datetime(2024, 2, 20, 12),
                          services=[{"service_id": 1, "name": "Regular Haircut", "price": 25, "duration": 30},
                                    {"service_id": 2, "name": "Beard Trim", "price": 15, "duration": 15}]))
        session.commit()

    def test_client_history_newest_first(self, client, session, customer, customer_headers):
        self._seed(session, customer)
        response = client.get(f"/clients/{customer.id}/visits", headers=customer_headers)
        assert response.status_code == 200
        totals = [v["total_price"] for v in response.json()["visits"]]
        assert totals == [40, 15, 25]

    def test_admin_filters(self, client, session, customer, owner_headers):
        self._seed(session, customer)
        response = client.get(
            "/visits?start_date=2024-02-01&end_date=2024-02-20&barber=mike",
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert [v["total_price"] for v in response.json()["visits"]] == [40]

    def test_barber_cannot_list_all(self, client, barber_headers):
        assert client.get("/visits", headers=barber_headers).status_code == 403

    def test_export_csv(self, client, session, customer, owner_headers):
        self._seed(session, customer)
        response = client.get("/visits/export", headers=owner_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("Visit ID,Date")
        assert len(lines) == 4

    def test_client_export(self, client, session, customer, customer_headers):
        self._seed(session, customer)
        response = client.get(f"/clients/{customer.id}/visits/export", headers=customer_headers)
        assert response.status_code == 200
        assert customer.client_code in response.headers["content-disposition"]

    def test_service_history(self, client, session, customer, customer_headers):
        self._seed(session, customer)
        response = client.get(f"/clients/{customer.id}/service-history", headers=customer_headers)
        data = response.json()
        assert data["total_visits"] == 3
        assert data["total_spent"] == 80
        assert data["services"][0]["name"] == "Regular Haircut"
        assert data["services"][0]["count"] == 2
        assert [t["month"] for t in data["monthly_trends"]] == ["2024-01", "2024-02"]
        assert data["monthly_trends"][1]["visits"] == 2
