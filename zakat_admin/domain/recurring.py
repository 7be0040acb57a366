"""Recurring payment schedule generation for approved applications"""

import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import List, Sequence
from zakat_admin.domain.models import (
    DistributionPhase,
    RecurringConfig,
    RecurringPeriod,
    ScheduledPayment,
    MonthlyForecast,
    ScheduleForecast,
)
from zakat_admin.domain.distribution import compute_phase_amounts, ensure_distribution_total, round_half_up
from zakat_admin.domain.exceptions import InvalidAmountError, InvalidRecurringConfigError
from zakat_admin.utils.date_utils import add_days, add_months

MIN_RECURRING_PAYMENTS = 1
MAX_RECURRING_PAYMENTS = 60
DEFAULT_GRACE_PERIOD_DAYS = 7


def parse_period(period: RecurringPeriod | str) -> RecurringPeriod:
    try:
        return RecurringPeriod(period)
    except ValueError as e:
        raise InvalidRecurringConfigError(f"Invalid period: {period}") from e


def calculate_cycle_dates(start_date: date, period: RecurringPeriod | str, count: int) -> List[date]:
    """
    Start date of every cycle.

    Each date is offset from start_date directly (not chained from the previous
    cycle), so a schedule starting on the 31st stays on month ends.
    """
    months = parse_period(period).months
    return [add_months(start_date, i * months) for i in range(count)]


def calculate_end_date(start_date: date, period: RecurringPeriod | str, count: int) -> date:
    """Start date of the final cycle"""
    if count < MIN_RECURRING_PAYMENTS:
        raise InvalidRecurringConfigError("A schedule needs at least one payment")
    return calculate_cycle_dates(start_date, period, count)[-1]


def validate_recurring_config(config: RecurringConfig, today: date | None = None) -> RecurringPeriod:
    """
    Check the schedule bounds before anything is generated.

    Returns the parsed period.

    Raises:
        InvalidRecurringConfigError: Count outside [1, 60], missing start date,
            unknown period or malformed custom amounts
    """
    count = config.number_of_payments
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidRecurringConfigError("Number of payments must be a whole number")
    if not MIN_RECURRING_PAYMENTS <= count <= MAX_RECURRING_PAYMENTS:
        raise InvalidRecurringConfigError(
            f"Number of payments must be between {MIN_RECURRING_PAYMENTS} and {MAX_RECURRING_PAYMENTS}"
        )

    if config.start_date is None:
        raise InvalidRecurringConfigError("Please select a start date for recurring payments")

    period = parse_period(config.period)

    if config.amount_per_payment is not None and config.amount_per_payment <= 0:
        raise InvalidRecurringConfigError("Amount per payment must be greater than zero")

    for custom in config.custom_amounts:
        if not 1 <= custom.payment_number <= count:
            raise InvalidRecurringConfigError(f"Custom amount targets unknown payment {custom.payment_number}")
        if custom.amount <= 0:
            raise InvalidRecurringConfigError(f"Custom amount for payment {custom.payment_number} must be positive")

    # Recommended, not enforced
    today = today or date.today()
    if config.start_date < today:
        logging.warning(
            "Recurring schedule starts in the past",
            extra={"start_date": config.start_date.isoformat(), "today": today.isoformat()},
        )

    return period


def _phase_offset_days(phase: DistributionPhase, start_date: date) -> int:
    if phase.days_from_approval is not None:
        return max(phase.days_from_approval, 0)
    if phase.expected_date is not None:
        return max((phase.expected_date - start_date).days, 0)
    return 0


def compute_recurring_schedule(
    config: RecurringConfig,
    approved_amount: int,
    phases: Sequence[DistributionPhase] | None = None,
    grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS,
    today: date | None = None,
) -> List[ScheduledPayment]:
    """
    Generate the full payment schedule for a recurring approval.

    Two modes:
    - Timeline: the phase pattern (percentages of approved_amount) repeats
      number_of_payments times; cycle i starts at start_date + i periods and
      each phase lands at its day offset inside the cycle.
    - Flat: amount_per_payment (default approved_amount / number_of_payments,
      rounded half-up) once per cycle, with optional per-payment overrides.

    Bounded at 60 cycles, so the schedule is built eagerly.

    Example:
        60000, monthly x 12, no phases -> 12 payments of 5000, one month apart
    """
    period = validate_recurring_config(config, today=today)

    if approved_amount is None or approved_amount <= 0:
        raise InvalidAmountError("Approved amount must be greater than zero")

    count = config.number_of_payments
    cycle_dates = calculate_cycle_dates(config.start_date, period, count)
    payments: List[ScheduledPayment] = []

    if phases:
        if config.custom_amounts:
            raise InvalidRecurringConfigError("Custom amounts apply to flat schedules only, not to a distribution timeline")
        ensure_distribution_total(phases)
        phase_amounts = compute_phase_amounts(phases, approved_amount)
        total_phases = len(phases)

        for cycle_index, cycle_start in enumerate(cycle_dates):
            for phase_index, (phase, priced) in enumerate(zip(phases, phase_amounts)):
                due_date = add_days(cycle_start, _phase_offset_days(phase, config.start_date))
                payments.append(
                    ScheduledPayment(
                        payment_number=cycle_index * total_phases + phase_index + 1,
                        total_payments=count * total_phases,
                        cycle_number=cycle_index + 1,
                        total_cycles=count,
                        phase_number=phase_index + 1,
                        total_phases=total_phases,
                        due_date=due_date,
                        overdue_after=add_days(due_date, grace_period_days),
                        amount=priced.amount,
                        description=f"Cycle {cycle_index + 1}/{count} - {phase.description}",
                    )
                )
        return payments

    amount_per_payment = config.amount_per_payment or round_half_up(Decimal(approved_amount) / Decimal(count))
    overrides = {custom.payment_number: custom for custom in config.custom_amounts}

    for index, due_date in enumerate(cycle_dates):
        payment_number = index + 1
        custom = overrides.get(payment_number)
        description = (custom.description if custom else None) or (
            f"Recurring payment {payment_number} of {count} - {period.value}"
        )
        payments.append(
            ScheduledPayment(
                payment_number=payment_number,
                total_payments=count,
                cycle_number=payment_number,
                total_cycles=count,
                due_date=due_date,
                overdue_after=add_days(due_date, grace_period_days),
                amount=custom.amount if custom else amount_per_payment,
                description=description,
            )
        )

    return payments


def forecast_by_month(payments: Sequence[ScheduledPayment]) -> ScheduleForecast:
    """Group a schedule into calendar-month outflows, sorted by month"""
    by_month: "OrderedDict[str, MonthlyForecast]" = OrderedDict()

    for payment in sorted(payments, key=lambda p: p.due_date):
        key = payment.due_date.strftime("%Y-%m")
        if key not in by_month:
            by_month[key] = MonthlyForecast(month=key, total_amount=0, payment_count=0)
        by_month[key].total_amount += payment.amount
        by_month[key].payment_count += 1

    total = sum(p.amount for p in payments)
    return ScheduleForecast(
        total_amount=total,
        total_payments=len(payments),
        average_payment=total / len(payments) if payments else 0.0,
        months=list(by_month.values()),
    )
