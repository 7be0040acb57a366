"""Distribution timeline: percentage split of an approved amount into payment phases"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence
from zakat_admin.domain.models import DistributionPhase, PhaseAmount, DistributionTotal
from zakat_admin.domain.exceptions import DistributionTotalError, InvalidAmountError, PhasePercentageError

FULL_DISTRIBUTION = Decimal(100)


def round_half_up(value: Decimal) -> int:
    """Round to a whole currency unit, halves away from zero"""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _as_decimal(number: float | int) -> Decimal:
    # str() keeps 33.3 as 33.3 instead of its binary expansion
    return Decimal(str(number))


def total_percentage(phases: Sequence[DistributionPhase]) -> Decimal:
    return sum((_as_decimal(p.percentage or 0) for p in phases), Decimal(0))


def out_of_range_phases(phases: Sequence[DistributionPhase]) -> List[DistributionPhase]:
    """Phases whose own percentage is below 0 or above 100"""
    return [p for p in phases if not 0 <= _as_decimal(p.percentage or 0) <= FULL_DISTRIBUTION]


def phase_amount(approved_amount: int, percentage: float) -> int:
    """Currency amount for a single phase percentage"""
    return round_half_up(_as_decimal(approved_amount) * _as_decimal(percentage) / FULL_DISTRIBUTION)


def compute_phase_amounts(phases: Sequence[DistributionPhase], approved_amount: int) -> List[PhaseAmount]:
    """
    Annotate each phase with its share of the approved amount.

    Each phase is rounded independently (half-up), so the rounded amounts may
    drift from approved_amount by up to one unit per phase. The percentage
    total is not checked here; gate submission with ensure_distribution_total.

    Example:
        75000 with [33%, 33%, 34%] -> [24750, 24750, 25500]
    """
    if approved_amount is None or approved_amount <= 0:
        raise InvalidAmountError("Approved amount must be greater than zero")

    return [
        PhaseAmount(
            description=phase.description,
            percentage=phase.percentage,
            amount=phase_amount(approved_amount, phase.percentage),
            days_from_approval=phase.days_from_approval,
            expected_date=phase.expected_date,
            requires_verification=phase.requires_verification,
            notes=phase.notes,
        )
        for phase in phases
    ]


def validate_distribution_total(
    phases: Sequence[DistributionPhase],
    approved_amount: int | None = None,
) -> DistributionTotal:
    """Running total plus shortfall/excess against 100%"""
    total = total_percentage(phases)
    difference = total - FULL_DISTRIBUTION

    total_amount = None
    if approved_amount is not None:
        total_amount = round_half_up(_as_decimal(approved_amount) * total / FULL_DISTRIBUTION)

    return DistributionTotal(
        total_percentage=float(total),
        difference=float(difference),
        is_valid=bool(phases) and difference == 0 and not out_of_range_phases(phases),
        total_amount=total_amount,
    )


def ensure_distribution_total(phases: Sequence[DistributionPhase]) -> None:
    """
    Raises:
        PhasePercentageError: When a phase lies outside 0-100%
        DistributionTotalError: When the phases do not sum to exactly 100%
    """
    invalid = out_of_range_phases(phases)
    if invalid:
        raise PhasePercentageError(invalid[0].description, invalid[0].percentage)

    result = validate_distribution_total(phases)
    if not result.is_valid:
        raise DistributionTotalError(result.total_percentage)
