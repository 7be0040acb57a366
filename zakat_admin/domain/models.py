"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class RecurringPeriod(str, Enum):
    """Cadence of a recurring payment schedule"""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi_annually"
    ANNUALLY = "annually"

    @property
    def months(self) -> int:
        return _PERIOD_MONTHS[self]


_PERIOD_MONTHS = {
    RecurringPeriod.MONTHLY: 1,
    RecurringPeriod.QUARTERLY: 3,
    RecurringPeriod.SEMI_ANNUALLY: 6,
    RecurringPeriod.ANNUALLY: 12,
}


class DecisionType(str, Enum):
    """Committee decision outcome"""

    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class DistributionPhase:
    """One percentage slice of an approved amount"""

    description: str
    percentage: float
    days_from_approval: Optional[int] = None
    expected_date: Optional[date] = None
    requires_verification: bool = False
    notes: Optional[str] = None


@dataclass
class PhaseAmount:
    """Distribution phase annotated with its currency amount"""

    description: str
    percentage: float
    amount: int
    days_from_approval: Optional[int] = None
    expected_date: Optional[date] = None
    requires_verification: bool = False
    notes: Optional[str] = None


@dataclass
class DistributionTotal:
    """Running total of a phase list, as shown next to the timeline editor"""

    total_percentage: float
    difference: float  # negative = shortfall, positive = excess
    is_valid: bool
    total_amount: Optional[int] = None


@dataclass
class CustomAmount:
    """Per-payment override for a flat recurring schedule"""

    payment_number: int
    amount: int
    description: Optional[str] = None


@dataclass
class RecurringConfig:
    """Recurring payment schedule configuration"""

    period: RecurringPeriod
    number_of_payments: int
    start_date: Optional[date]
    amount_per_payment: Optional[int] = None
    has_distribution_timeline: bool = False
    custom_amounts: List[CustomAmount] = field(default_factory=list)


@dataclass
class ScheduledPayment:
    """Single payment in a generated schedule"""

    payment_number: int
    total_payments: int
    cycle_number: int
    total_cycles: int
    due_date: date
    overdue_after: date
    amount: int
    description: str
    phase_number: Optional[int] = None
    total_phases: Optional[int] = None


@dataclass
class MonthlyForecast:
    """Scheduled outflow for one calendar month"""

    month: str  # YYYY-MM
    total_amount: int
    payment_count: int


@dataclass
class ScheduleForecast:
    """Month-by-month view of a payment schedule"""

    total_amount: int
    total_payments: int
    average_payment: float
    months: List[MonthlyForecast]


@dataclass
class Application:
    """Beneficiary application as returned by the ERP API"""

    id: str
    application_number: str
    status: str
    requested_amount: int
    beneficiary_name: Optional[str] = None
    scheme_name: Optional[str] = None
    distribution_timeline: List[DistributionPhase] = field(default_factory=list)


@dataclass
class Pagination:
    """Server-side pagination state of a list page"""

    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 1


@dataclass
class AuthContext:
    """Bearer token handed to the ERP client"""

    token: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return _as_utc(now) >= _as_utc(self.expires_at)


def _as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass
class ApiResult(Generic[T]):
    """Envelope returned by every ERP API call"""

    success: bool
    data: Optional[T] = None
    message: Optional[str] = None

    @classmethod
    def from_envelope(cls, body: Dict[str, Any]) -> "ApiResult[Any]":
        return cls(
            success=bool(body["success"]),
            data=body.get("data"),
            message=body.get("message"),
        )
