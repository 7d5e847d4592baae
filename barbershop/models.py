# barbershop/models.py

from typing import Optional, List
from datetime import datetime, date as Date

from sqlalchemy import UniqueConstraint
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from .core import utcnow


class Admin(SQLModel, table=True):
    """Staff account: owner, barber or receptionist."""

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    name: str
    role: str = Field(index=True)  # owner, barber or receptionist
    active: bool = Field(default=True, index=True)
    join_date: datetime = Field(default_factory=utcnow)
    phone_number: Optional[str] = None
    profile_picture: Optional[str] = None
    scanner_enabled: bool = False
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_barber(self) -> bool:
        return self.role == "barber"


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_code: str = Field(index=True, unique=True)
    first_name: str
    last_name: str
    phone_number: str = Field(index=True, unique=True)
    password_hash: str
    date_created: datetime = Field(default_factory=utcnow)
    last_login: Optional[datetime] = None
    visit_count: int = 0
    rewards_earned: int = 0
    rewards_redeemed: int = 0
    account_active: bool = True
    preferred_services: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    qr_code_url: Optional[str] = None
    last_visit: Optional[datetime] = None

    # loyalty program
    selected_reward_id: Optional[int] = Field(default=None, foreign_key="reward.id")
    selected_reward_start_visits: Optional[int] = None
    total_lifetime_visits: int = 0
    current_progress_visits: int = 0
    loyalty_status: str = Field(default="new", index=True)
    loyalty_join_date: Optional[datetime] = Field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ServiceCategory(SQLModel, table=True):
    __tablename__ = "service_category"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    description: str = ""
    display_order: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str
    price: float
    duration_minutes: int
    image_url: Optional[str] = None
    category_id: int = Field(foreign_key="service_category.id", index=True)
    is_active: bool = Field(default=True, index=True)
    popularity_score: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Reward(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str
    visits_required: int = Field(index=True)
    reward_type: str = "free"  # free or discount
    discount_percentage: Optional[int] = None
    is_active: bool = Field(default=True, index=True)
    applicable_services: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    max_redemptions: Optional[int] = None
    valid_for_days: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Visit(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    visit_date: datetime = Field(default_factory=utcnow, index=True)
    # snapshot of {service_id, name, price, duration}
    services: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    total_price: float = 0
    barber: str
    barber_id: Optional[int] = Field(default=None, foreign_key="admin.id", index=True)
    notes: Optional[str] = None
    reward_redeemed: bool = False
    redeemed_reward_id: Optional[int] = Field(default=None, foreign_key="reward.id")
    redemption: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    visit_number: int = 0
    is_reward_redemption: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class Reservation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: Optional[int] = Field(default=None, foreign_key="client.id", index=True)
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    preferred_date: Date = Field(index=True)
    preferred_time: str  # HH:MM
    status: str = Field(default="pending", index=True)
    is_read: bool = Field(default=False, index=True)
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    contacted_at: Optional[datetime] = None
    contacted_by: Optional[int] = Field(default=None, foreign_key="admin.id")
    source: str  # guest or client_account
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class ScannerSettings(SQLModel, table=True):
    __tablename__ = "scanner_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    global_scanner_enabled: bool = False
    auto_disable_hours: int = 2
    disabled_until: Optional[datetime] = None
    last_enabled_by: Optional[str] = None
    last_enabled_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=utcnow)


class BarberStats(SQLModel, table=True):
    __tablename__ = "barber_stats"

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="admin.id", unique=True, index=True)
    total_visits: int = 0
    total_revenue: float = 0
    unique_clients: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    work_days_since_joining: int = 0
    average_visits_per_day: float = 0
    # [{month, visits_count, revenue, unique_clients}]
    monthly_stats: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    # [{service_id, service_name, count, revenue}]
    service_stats: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    client_retention_rate: float = 0
    average_service_time: float = 0
    top_services: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    busy_hours: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    last_updated: datetime = Field(default_factory=utcnow)


class Achievement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str
    category: str = Field(index=True)
    subcategory: Optional[str] = None
    requirement: int
    requirement_type: str
    requirement_details: dict = Field(default_factory=dict, sa_column=Column(JSON))
    badge: str = "🎯"
    color: str = "bg-blue-500"
    icon: str = "FaTrophy"
    tier: str = "bronze"
    points: int = 10
    reward: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    is_repeatable: bool = False
    max_completions: Optional[int] = None
    is_active: bool = Field(default=True, index=True)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BarberAchievement(SQLModel, table=True):
    __tablename__ = "barber_achievement"
    __table_args__ = (
        UniqueConstraint("barber_id", "achievement_id", name="uq_barber_achievement"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="admin.id", index=True)
    achievement_id: int = Field(foreign_key="achievement.id", index=True)
    progress: int = 0
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    completion_count: int = 0
    current_streak: int = 0
    last_progress_date: Optional[datetime] = None
    notes: Optional[str] = None
    meta: dict = Field(default_factory=dict, sa_column=Column(JSON))


class BarberReward(SQLModel, table=True):
    __tablename__ = "barber_reward"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str
    reward_type: str  # monetary, gift, time_off, recognition
    reward_value: str
    requirement_type: str  # visits, clients, months_worked, client_retention, custom
    requirement_value: int
    requirement_description: str
    category: str
    icon: str
    color: str
    priority: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BarberRewardRedemption(SQLModel, table=True):
    __tablename__ = "barber_reward_redemption"
    __table_args__ = (
        UniqueConstraint("barber_id", "reward_id", name="uq_barber_reward"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="admin.id", index=True)
    reward_id: int = Field(foreign_key="barber_reward.id", index=True)
    status: str = "earned"  # earned or redeemed
    earned_at: datetime = Field(default_factory=utcnow)
    redeemed_at: Optional[datetime] = None
    redeemed_by: Optional[int] = Field(default=None, foreign_key="admin.id")
    notes: Optional[str] = None
    progress_at_earning: dict = Field(default_factory=dict, sa_column=Column(JSON))


class Transformation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    before_image: str
    after_image: str
    barber_id: Optional[int] = Field(default=None, foreign_key="admin.id")
    service_id: Optional[int] = Field(default=None, foreign_key="service.id")
    is_featured: bool = False
    is_active: bool = True
    display_order: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
