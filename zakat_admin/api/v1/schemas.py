"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Dict, List, Optional
from zakat_admin.domain.models import (
    CustomAmount,
    DecisionType,
    DistributionPhase,
    RecurringConfig,
    RecurringPeriod,
)


class PhaseSchema(BaseModel):
    """Distribution phase as entered in the timeline editor"""

    description: str = Field(..., min_length=1)
    percentage: float = Field(..., ge=0, le=100)
    days_from_approval: Optional[int] = Field(None, ge=0)
    expected_date: Optional[date] = None
    requires_verification: bool = False
    notes: Optional[str] = None

    def to_domain(self) -> DistributionPhase:
        return DistributionPhase(**self.model_dump())


class PhaseAmountSchema(PhaseSchema):
    amount: int


class DistributionTotalSchema(BaseModel):
    total_percentage: float
    difference: float
    is_valid: bool
    total_amount: Optional[int] = None


class DistributionAmountsRequest(BaseModel):
    """Request body for POST /v1/distribution/amounts"""

    approved_amount: int = Field(..., gt=0, description="Approved amount in whole currency units")
    phases: List[PhaseSchema]


class DistributionAmountsResponse(BaseModel):
    phases: List[PhaseAmountSchema]
    total: DistributionTotalSchema


class CustomAmountSchema(BaseModel):
    payment_number: int
    amount: int
    description: Optional[str] = None


class RecurringConfigSchema(BaseModel):
    """Recurring schedule settings; ranges are checked by the domain layer"""

    period: RecurringPeriod = RecurringPeriod.MONTHLY
    number_of_payments: int = 12
    start_date: Optional[date] = None
    amount_per_payment: Optional[int] = None
    custom_amounts: List[CustomAmountSchema] = []

    def to_domain(self, has_distribution_timeline: bool = False) -> RecurringConfig:
        return RecurringConfig(
            period=self.period,
            number_of_payments=self.number_of_payments,
            start_date=self.start_date,
            amount_per_payment=self.amount_per_payment,
            has_distribution_timeline=has_distribution_timeline,
            custom_amounts=[CustomAmount(**c.model_dump()) for c in self.custom_amounts],
        )


class ScheduleRequest(BaseModel):
    """Request body for POST /v1/distribution/schedule"""

    approved_amount: int = Field(..., gt=0)
    recurring: RecurringConfigSchema
    phases: Optional[List[PhaseSchema]] = None


class ScheduledPaymentSchema(BaseModel):
    payment_number: int
    total_payments: int
    cycle_number: int
    total_cycles: int
    phase_number: Optional[int] = None
    total_phases: Optional[int] = None
    due_date: date
    overdue_after: date
    amount: int
    description: str


class MonthlyForecastSchema(BaseModel):
    month: str
    total_amount: int
    payment_count: int


class ScheduleResponse(BaseModel):
    payments: List[ScheduledPaymentSchema]
    total_amount: int
    average_payment: float
    end_date: date
    forecast: List[MonthlyForecastSchema]


class DecisionRequest(BaseModel):
    """Request body for POST /v1/committee/{application_id}/decision"""

    decision: DecisionType
    comments: str = ""
    approved_amount: Optional[int] = None
    phases: Optional[List[PhaseSchema]] = None
    recurring: Optional[RecurringConfigSchema] = None


class DecisionResponse(BaseModel):
    submission_id: str
    application_id: str
    decision: DecisionType
    message: str
    is_recurring: bool
    payment_count: int


class SubmittedPaymentSchema(BaseModel):
    payment_number: int
    cycle_number: int
    phase_number: Optional[int] = None
    due_date: date
    amount: int
    description: str


class SubmissionResponse(BaseModel):
    """Single ledger entry"""

    submission_id: str
    application_id: str
    decision: str
    approved_amount: Optional[int] = None
    is_recurring: bool
    upstream_success: bool
    upstream_message: Optional[str] = None
    created_at: str
    payments: List[SubmittedPaymentSchema] = []


class SubmissionHistoryResponse(BaseModel):
    application_id: str
    submissions: List[SubmissionResponse]


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ApplicationSummary(BaseModel):
    id: str
    application_number: str
    status: str
    requested_amount: int
    beneficiary_name: Optional[str] = None
    scheme_name: Optional[str] = None
    distribution_timeline: List[PhaseSchema] = []


class PendingApprovalsResponse(BaseModel):
    applications: List[ApplicationSummary]
    pagination: PaginationSchema


class ApplicationListResponse(BaseModel):
    """Response for GET /v1/applications"""

    items: List[dict]
    pagination: PaginationSchema
    active_tab: str
    tab_counts: Dict[str, int]
    counts_scope: str
