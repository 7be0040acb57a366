"""POST /v1/distribution/* - distribution timeline and recurring schedule calculator"""

import logging
from dataclasses import asdict
from fastapi import APIRouter, HTTPException, Request

from zakat_admin.api.v1.schemas import (
    DistributionAmountsRequest,
    DistributionAmountsResponse,
    DistributionTotalSchema,
    MonthlyForecastSchema,
    PhaseAmountSchema,
    ScheduledPaymentSchema,
    ScheduleRequest,
    ScheduleResponse,
)
from zakat_admin.api.dependencies import get_request_id
from zakat_admin.config import settings
from zakat_admin.domain.distribution import compute_phase_amounts, validate_distribution_total
from zakat_admin.domain.recurring import compute_recurring_schedule, forecast_by_month
from zakat_admin.domain.exceptions import ValidationError
from zakat_admin.infrastructure.observability.metrics import record_validation_failure, schedule_size_histogram

router = APIRouter()


@router.post("/distribution/amounts", response_model=DistributionAmountsResponse)
def calculate_phase_amounts(request_body: DistributionAmountsRequest):
    """
    Convert phase percentages into amounts.

    An invalid total is reported in `total` rather than rejected, so the
    editor can show the running total and shortfall/excess while typing.
    """
    phases = [p.to_domain() for p in request_body.phases]
    priced = compute_phase_amounts(phases, request_body.approved_amount)
    total = validate_distribution_total(phases, request_body.approved_amount)

    return DistributionAmountsResponse(
        phases=[PhaseAmountSchema(**asdict(p)) for p in priced],
        total=DistributionTotalSchema(**asdict(total)),
    )


@router.post("/distribution/schedule", response_model=ScheduleResponse)
def calculate_schedule(request_body: ScheduleRequest, request: Request):
    """
    Generate a recurring payment schedule.

    Returns:
        Every scheduled payment plus a month-by-month forecast
    """
    phases = [p.to_domain() for p in request_body.phases or []]
    config = request_body.recurring.to_domain(has_distribution_timeline=bool(phases))

    try:
        payments = compute_recurring_schedule(
            config,
            request_body.approved_amount,
            phases=phases or None,
            grace_period_days=settings.payment_grace_days,
        )
    except ValidationError as e:
        record_validation_failure(e)
        logging.warning(f"Schedule rejected: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    schedule_size_histogram.observe(len(payments))
    forecast = forecast_by_month(payments)

    return ScheduleResponse(
        payments=[ScheduledPaymentSchema(**asdict(p)) for p in payments],
        total_amount=forecast.total_amount,
        average_payment=forecast.average_payment,
        end_date=max(p.due_date for p in payments),
        forecast=[MonthlyForecastSchema(**asdict(m)) for m in forecast.months],
    )
