from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CHARACTERISTICS = ("acidity", "aroma", "body", "spice", "sweetness", "tannins")

SEASONS = ("Spring", "Summer", "Fall", "Winter")

WEEKS_PER_SEASON = 12
WEEKS_PER_YEAR = WEEKS_PER_SEASON * len(SEASONS)


def default_characteristics() -> Dict[str, float]:
    return {k: 0.5 for k in CHARACTERISTICS}


@dataclass
class GameDate:
    week: int = 1
    season: str = "Spring"
    year: int = 2024


@dataclass
class Vineyard:
    vineyard_id: str
    name: str
    country: str
    region: str
    hectares: float
    altitude: int
    aspect: str
    soil: List[str] = field(default_factory=list)
    land_value: float = 0.0  # euros per hectare
    grape: Optional[str] = None
    vine_age: Optional[int] = None  # None until planted
    density: int = 0  # vines per hectare
    status: str = "Barren"  # Barren|Planted|Growing|Harvested|Dormant
    ripeness: float = 0.0
    vineyard_health: float = 0.6
    vine_yield: float = 0.02
    vineyard_prestige: float = 0.0
    purchase_price: float = 0.0
    acquired_week: int = 0

    def total_value(self) -> float:
        return float(self.land_value) * float(self.hectares)


@dataclass
class WineBatch:
    batch_id: str
    vineyard_id: str
    vineyard_name: str
    grape: str
    grape_color: str
    vintage: int
    quantity: float  # kg while grapes/must, bottles once bottled
    state: str = "grapes"  # grapes|must_ready|must_fermenting|bottled
    characteristics: Dict[str, float] = field(default_factory=default_characteristics)
    quality: float = 0.5
    balance: float = 0.5
    value_index: float = 0.0  # land value + vineyard prestige at harvest, 0-1
    fermentation_progress: float = 0.0
    fermentation_method: str = ""
    fermentation_temperature: str = ""
    crushing_method: str = ""
    estimated_price: float = 0.0
    asking_price: Optional[float] = None
    harvest_week: int = 0
    prone_to_oxidation: float = 0.5
    oxidation: float = 0.0  # weekly chance the batch oxidizes
    is_oxidized: bool = False

    def name(self) -> str:
        return f"{self.grape}, {self.vineyard_name}, {self.vintage}"


@dataclass
class Staff:
    staff_id: str
    name: str
    nationality: str
    skill_level: float
    skills: Dict[str, float] = field(default_factory=dict)
    specializations: List[str] = field(default_factory=list)
    wage: float = 0.0  # weekly
    hire_week: int = 0
    workforce: int = 50


@dataclass
class Lender:
    lender_id: str
    name: str
    lender_type: str
    base_interest_rate: float
    min_loan_amount: float
    max_loan_amount: float
    min_duration_seasons: int
    max_duration_seasons: int
    risk_tolerance: float
    flexibility: float
    origination_fee: Dict[str, float] = field(default_factory=dict)
    blacklisted: bool = False


@dataclass
class Loan:
    loan_id: str
    lender_id: str
    lender_name: str
    lender_type: str
    principal_amount: float
    base_interest_rate: float
    effective_interest_rate: float
    origination_fee: float
    remaining_balance: float
    seasonal_payment: float
    seasons_remaining: int
    total_seasons: int
    start_week: int
    next_payment_week: int
    missed_payments: int = 0
    status: str = "active"  # active|paid_off|defaulted


@dataclass
class Customer:
    customer_id: str
    name: str
    country: str
    customer_type: str
    purchasing_power: float
    wine_tradition: float
    market_share: float
    price_multiplier: float
    relationship: float = 0.1
    active: bool = False


@dataclass
class RelationshipBoost:
    boost_id: str
    customer_id: str
    amount: float
    decay_rate: float
    created_week: int
    description: str = ""


@dataclass
class WineOrder:
    order_id: str
    customer_id: str
    customer_name: str
    customer_country: str
    customer_type: str
    batch_id: str
    wine_name: str
    requested_quantity: int
    offered_price: float
    asking_price_at_order: float
    total_value: float
    ordered_week: int
    status: str = "pending"  # pending|fulfilled|partially_fulfilled|rejected
    fulfilled_quantity: int = 0
    fulfilled_value: float = 0.0
    customer_relationship: float = 0.0


@dataclass
class PrestigeEvent:
    event_id: str
    event_type: str
    amount: float
    decay_rate: float
    created_week: int
    description: str = ""
    source_id: Optional[str] = None
    category: str = "company"  # company|vineyard


@dataclass
class Activity:
    activity_id: str
    category: str  # planting|harvesting|clearing|uprooting|crushing
    title: str
    target_id: str
    total_work: int
    completed_work: float = 0.0
    params: Dict[str, Any] = field(default_factory=dict)
    assigned_staff_ids: List[str] = field(default_factory=list)
    created_week: int = 0

    def progress(self) -> float:
        if self.total_work <= 0:
            return 1.0
        return min(1.0, float(self.completed_work) / float(self.total_work))


@dataclass
class Transaction:
    week: int
    season: str
    year: int
    amount: float
    description: str
    category: str


@dataclass
class Notification:
    notification_id: str
    week: int
    season: str
    year: int
    text: str
    origin: str = ""
    category: str = "general"


@dataclass
class WeekResult:
    closed_week: int  # absolute week whose transactions this result carries
    absolute_week: int
    week: int
    season: str
    year: int
    money_before: float = 0.0
    money_after: float = 0.0
    transactions: List[Transaction] = field(default_factory=list)
    orders_created: int = 0
    activities_completed: int = 0
    messages: List[str] = field(default_factory=list)
    prestige: float = 0.0
    season_changed: bool = False
    year_changed: bool = False


@dataclass
class GameState:
    company_id: str = "company-1"
    company_name: str = "My Winery"

    week: int = 1
    season: str = "Spring"
    year: int = 2024
    start_year: int = 2024

    money: float = 0.0
    credit_rating: float = 0.5
    economy_phase: str = "Stable"

    vineyards: Dict[str, Vineyard] = field(default_factory=dict)
    batches: Dict[str, WineBatch] = field(default_factory=dict)
    staff: Dict[str, Staff] = field(default_factory=dict)
    lenders: Dict[str, Lender] = field(default_factory=dict)
    loans: Dict[str, Loan] = field(default_factory=dict)
    customers: Dict[str, Customer] = field(default_factory=dict)
    orders: Dict[str, WineOrder] = field(default_factory=dict)
    prestige_events: Dict[str, PrestigeEvent] = field(default_factory=dict)
    relationship_boosts: Dict[str, RelationshipBoost] = field(default_factory=dict)
    activities: Dict[str, Activity] = field(default_factory=dict)
    notifications: List[Notification] = field(default_factory=list)

    # Current week's transactions; earlier weeks live in ledger.csv.
    transactions: List[Transaction] = field(default_factory=list)

    # Pending player choices (regenerated on request).
    land_offers: List[Vineyard] = field(default_factory=list)
    staff_candidates: List[Staff] = field(default_factory=list)

    # RNG (for reproducibility)
    rng_seed: int = 20240101
    rng_state: Optional[Any] = None

    def season_index(self) -> int:
        return SEASONS.index(self.season) if self.season in SEASONS else 0

    def absolute_week(self) -> int:
        return absolute_week(self.week, self.season, self.year, self.start_year)

    def date(self) -> GameDate:
        return GameDate(week=self.week, season=self.season, year=self.year)


def absolute_week(week: int, season: str, year: int, start_year: int = 2024) -> int:
    s_idx = SEASONS.index(season) if season in SEASONS else 0
    return (int(year) - int(start_year)) * WEEKS_PER_YEAR + s_idx * WEEKS_PER_SEASON + int(week)


def date_from_absolute_week(abs_week: int, start_year: int = 2024) -> GameDate:
    idx = max(0, int(abs_week) - 1)
    year = start_year + idx // WEEKS_PER_YEAR
    rem = idx % WEEKS_PER_YEAR
    season = SEASONS[rem // WEEKS_PER_SEASON]
    week = rem % WEEKS_PER_SEASON + 1
    return GameDate(week=week, season=season, year=year)
