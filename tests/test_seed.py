"""Tests for the default catalog seeding."""

from sqlmodel import Session, select

from barbershop import config
from barbershop.models import Admin, Reward, Service
from barbershop.seed import seed


class TestSeed:
    def test_first_run_creates_everything(self, engine):
        created = seed(engine)
        assert created == {
            "categories": 4,
            "services": 6,
            "rewards": 3,
            "achievements": 12,
            "barber_rewards": 4,
            "owner": True,
        }

    def test_idempotent(self, engine):
        seed(engine)
        created = seed(engine)
        assert created == {
            "categories": 0,
            "services": 0,
            "rewards": 0,
            "achievements": 0,
            "barber_rewards": 0,
            "owner": False,
        }

    def test_reward_services_resolved(self, engine):
        seed(engine)
        with Session(engine) as session:
            services = {s.name: s.id for s in session.exec(select(Service)).all()}
            rewards = {r.name: r for r in session.exec(select(Reward)).all()}

        assert rewards["Free Beard Trim"].applicable_services == [services["Beard Trim"]]
        assert sorted(rewards["50% Off Any Service"].applicable_services) == sorted(services.values())
        assert rewards["50% Off Any Service"].discount_percentage == 50

    def test_owner_can_log_in(self, client, engine):
        seed(engine)
        with Session(engine) as session:
            owner = session.exec(select(Admin).where(Admin.role == "owner")).one()
        assert owner.email == config.OWNER_EMAIL.lower()

        response = client.post("/auth/login", data={"username": owner.email, "password": config.OWNER_PASSWORD})
        assert response.status_code == 200
