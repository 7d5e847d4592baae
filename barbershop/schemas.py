# barbershop/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from datetime import datetime, date
from typing import List, Optional


def public(obj, schema) -> dict:
    """Dump a table row through one of the *Public schemas."""
    return schema.model_validate(obj, from_attributes=True).model_dump()


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class StaffRole(str, Enum):
    owner = "owner"
    barber = "barber"
    receptionist = "receptionist"


class RewardType(str, Enum):
    free = "free"
    discount = "discount"


class ReservationStatus(str, Enum):
    pending = "pending"
    contacted = "contacted"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class ReservationSource(str, Enum):
    guest = "guest"
    client_account = "client_account"


class ReservationAction(str, Enum):
    mark_read = "mark_read"
    mark_unread = "mark_unread"
    update_status = "update_status"


class AchievementCategory(str, Enum):
    tenure = "tenure"
    visits = "visits"
    clients = "clients"
    consistency = "consistency"
    quality = "quality"
    teamwork = "teamwork"
    learning = "learning"
    milestone = "milestone"


class RequirementType(str, Enum):
    count = "count"
    days = "days"
    streak = "streak"
    percentage = "percentage"
    milestone = "milestone"


class Tier(str, Enum):
    bronze = "bronze"
    silver = "silver"
    gold = "gold"
    platinum = "platinum"
    diamond = "diamond"


class BarberRewardType(str, Enum):
    monetary = "monetary"
    gift = "gift"
    time_off = "time_off"
    recognition = "recognition"


class BarberRequirementType(str, Enum):
    visits = "visits"
    clients = "clients"
    months_worked = "months_worked"
    client_retention = "client_retention"
    custom = "custom"


class ReportPeriod(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class ExportType(str, Enum):
    visits = "visits"
    clients = "clients"
    financial = "financial"


class LeaderboardSort(str, Enum):
    overall = "overall"
    visits = "visits"
    revenue = "revenue"
    clients = "clients"
    efficiency = "efficiency"


class TimePeriod(str, Enum):
    all_time = "all-time"
    this_month = "this-month"


# --- accounts ---

class ClientRegister(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    phone_number: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=6, max_length=72)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=72)


class PasswordReset(BaseModel):
    new_password: str = Field(min_length=6, max_length=72)


class AdminProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone_number: Optional[str] = None


class StaffPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    name: str
    role: str
    active: bool
    join_date: datetime
    phone_number: Optional[str] = None
    profile_picture: Optional[str] = None
    scanner_enabled: bool
    last_login: Optional[datetime] = None


# --- clients ---

class ClientCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    phone_number: str = Field(min_length=3, max_length=30)
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)
    preferred_services: List[str] = []


class ClientUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    phone_number: Optional[str] = Field(default=None, min_length=3, max_length=30)
    preferred_services: Optional[List[str]] = None
    account_active: Optional[bool] = None


class ClientPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_code: str
    first_name: str
    last_name: str
    phone_number: str
    date_created: datetime
    last_login: Optional[datetime] = None
    visit_count: int
    rewards_earned: int
    rewards_redeemed: int
    account_active: bool
    preferred_services: List[str] = []
    qr_code_url: Optional[str] = None
    last_visit: Optional[datetime] = None
    selected_reward_id: Optional[int] = None
    selected_reward_start_visits: Optional[int] = None
    total_lifetime_visits: int
    current_progress_visits: int
    loyalty_status: str
    loyalty_join_date: Optional[datetime] = None


class ClientCreated(BaseModel):
    client: ClientPublic
    # only set when the password was generated server-side
    generated_password: Optional[str] = None


# --- visits ---

class VisitCreate(BaseModel):
    service_ids: List[int] = Field(min_length=1)
    total_price: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    visit_date: Optional[datetime] = None
    # admins may record on behalf of a barber
    barber_id: Optional[int] = None


# --- loyalty ---

class RewardSelect(BaseModel):
    reward_id: int


class RewardRedeem(BaseModel):
    reward_id: int
    visit_id: Optional[int] = None
    create_special_visit: bool = False


# --- rewards ---

class RewardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    visits_required: int = Field(ge=1)
    reward_type: RewardType = RewardType.free
    discount_percentage: Optional[int] = Field(default=None, ge=1, le=100)
    is_active: bool = True
    applicable_services: List[int] = []
    max_redemptions: Optional[int] = Field(default=None, ge=1)
    valid_for_days: Optional[int] = Field(default=None, ge=1)


class RewardUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    visits_required: Optional[int] = Field(default=None, ge=1)
    reward_type: Optional[RewardType] = None
    discount_percentage: Optional[int] = Field(default=None, ge=1, le=100)
    is_active: Optional[bool] = None
    applicable_services: Optional[List[int]] = None
    max_redemptions: Optional[int] = Field(default=None, ge=1)
    valid_for_days: Optional[int] = Field(default=None, ge=1)


# --- services ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(default="", max_length=200)
    display_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    price: float = Field(ge=0)
    duration_minutes: int = Field(ge=1)
    image_url: Optional[str] = None
    category_id: int
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    price: Optional[float] = Field(default=None, ge=0)
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    is_active: Optional[bool] = None


# --- reservations ---

class ReservationCreate(BaseModel):
    guest_name: Optional[str] = Field(default=None, max_length=100)
    guest_phone: Optional[str] = Field(default=None, max_length=30)
    preferred_date: date
    preferred_time: str
    notes: Optional[str] = Field(default=None, max_length=500)


class ReservationUpdate(BaseModel):
    action: Optional[ReservationAction] = None
    status: Optional[ReservationStatus] = None
    admin_notes: Optional[str] = Field(default=None, max_length=1000)
    notes: Optional[str] = Field(default=None, max_length=500)
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None


# --- barbers ---

class BarberCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str
    password: str = Field(min_length=6, max_length=72)
    name: str = Field(min_length=1, max_length=100)
    phone_number: Optional[str] = None
    profile_picture: Optional[str] = None
    join_date: Optional[datetime] = None
    scanner_enabled: bool = False


class BarberUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = None
    profile_picture: Optional[str] = None
    join_date: Optional[datetime] = None
    active: Optional[bool] = None
    scanner_enabled: Optional[bool] = None


class BarberProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = None
    profile_picture: Optional[str] = None


class ScannerToggle(BaseModel):
    enabled: bool


class BulkScannerToggle(BaseModel):
    enabled: bool
    barber_ids: Optional[List[int]] = None


# --- scanner ---

class ScannerSettingsUpdate(BaseModel):
    global_scanner_enabled: Optional[bool] = None
    auto_disable_hours: Optional[int] = Field(default=None, ge=1, le=10000)


# --- achievements ---

class AchievementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    category: AchievementCategory
    subcategory: Optional[str] = None
    requirement: int = Field(ge=1)
    requirement_type: RequirementType = RequirementType.count
    requirement_details: dict = {}
    badge: str = "🎯"
    color: str = "bg-blue-500"
    icon: str = "FaTrophy"
    tier: Tier = Tier.bronze
    points: int = Field(default=10, ge=1)
    reward: Optional[dict] = None
    is_repeatable: bool = False
    max_completions: Optional[int] = Field(default=None, ge=1)
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class AchievementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    category: Optional[AchievementCategory] = None
    subcategory: Optional[str] = None
    requirement: Optional[int] = Field(default=None, ge=1)
    requirement_type: Optional[RequirementType] = None
    requirement_details: Optional[dict] = None
    badge: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    tier: Optional[Tier] = None
    points: Optional[int] = Field(default=None, ge=1)
    reward: Optional[dict] = None
    is_repeatable: Optional[bool] = None
    max_completions: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


# --- barber rewards ---

class BarberRewardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    reward_type: BarberRewardType
    reward_value: str = Field(min_length=1)
    requirement_type: BarberRequirementType
    requirement_value: int = Field(ge=0)
    requirement_description: str = Field(min_length=1)
    category: str = Field(min_length=1)
    icon: str = "🏆"
    color: str = "bg-blue-500"
    priority: int = 0
    is_active: bool = True


class BarberRewardUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    reward_type: Optional[BarberRewardType] = None
    reward_value: Optional[str] = None
    requirement_type: Optional[BarberRequirementType] = None
    requirement_value: Optional[int] = Field(default=None, ge=0)
    requirement_description: Optional[str] = None
    category: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class RedemptionRedeem(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=500)


# --- transformations ---

class TransformationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    before_image: str
    after_image: str
    barber_id: Optional[int] = None
    service_id: Optional[int] = None
    is_featured: bool = False
    is_active: bool = True
    display_order: int = 0


class TransformationUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    before_image: Optional[str] = None
    after_image: Optional[str] = None
    barber_id: Optional[int] = None
    service_id: Optional[int] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None
