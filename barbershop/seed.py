# barbershop/seed.py

import logging

from sqlmodel import Session, select

from . import config, data
from .auth import hash_password
from .db import engine, create_db_and_tables
from .models import Achievement, Admin, BarberReward, Reward, Service, ServiceCategory

logger = logging.getLogger(__name__)


def seed_owner(session: Session) -> bool:
    email = config.OWNER_EMAIL.lower()
    if session.exec(select(Admin).where(Admin.email == email)).first() is not None:
        return False
    session.add(Admin(
        username="admin",
        email=email,
        password_hash=hash_password(config.OWNER_PASSWORD),
        name="Owner",
        role="owner",
    ))
    logger.info(f"Created owner account {email}")
    return True


def seed_catalog(session: Session) -> dict:
    """Insert the default catalog. Rows that already exist (by name) are left alone."""
    created = {"categories": 0, "services": 0, "rewards": 0, "achievements": 0, "barber_rewards": 0}

    # 1) Categories
    categories = {c.name: c for c in session.exec(select(ServiceCategory)).all()}
    for item in data.CATEGORIES:
        if item["name"] not in categories:
            category = ServiceCategory(**item)
            session.add(category)
            categories[item["name"]] = category
            created["categories"] += 1
    session.flush()

    # 2) Services
    services = {s.name: s for s in session.exec(select(Service)).all()}
    for item in data.SERVICES:
        if item["name"] in services:
            continue
        fields = {k: v for k, v in item.items() if k != "category"}
        service = Service(**fields, category_id=categories[item["category"]].id)
        session.add(service)
        services[item["name"]] = service
        created["services"] += 1
    session.flush()

    # 3) Client rewards
    existing = set(session.exec(select(Reward.name)).all())
    for item in data.REWARDS:
        if item["name"] in existing:
            continue
        names = item["services"] or list(services)
        fields = {k: v for k, v in item.items() if k != "services"}
        session.add(Reward(**fields, applicable_services=[services[name].id for name in names]))
        created["rewards"] += 1

    # 4) Achievements
    existing = set(session.exec(select(Achievement.title)).all())
    for item in data.ACHIEVEMENTS:
        if item["title"] not in existing:
            session.add(Achievement(**item))
            created["achievements"] += 1

    # 5) Barber rewards
    existing = set(session.exec(select(BarberReward.name)).all())
    for item in data.BARBER_REWARDS:
        if item["name"] not in existing:
            session.add(BarberReward(**item))
            created["barber_rewards"] += 1

    return created


def seed(bind=None) -> dict:
    create_db_and_tables(bind)
    with Session(bind or engine) as session:
        created = seed_catalog(session)
        created["owner"] = seed_owner(session)
        session.commit()
    return created


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    created = seed()
    logger.info(f"Seed complete: {created}")


if __name__ == "__main__":
    main()
