"""Unit tests for distribution timeline amounts"""

import pytest
from decimal import Decimal
from zakat_admin.domain.models import DistributionPhase
from zakat_admin.domain.distribution import (
    compute_phase_amounts,
    ensure_distribution_total,
    round_half_up,
    validate_distribution_total,
)
from zakat_admin.domain.exceptions import DistributionTotalError, InvalidAmountError, PhasePercentageError


def phases_of(*percentages):
    return [DistributionPhase(description=f"Phase {i + 1}", percentage=p) for i, p in enumerate(percentages)]


def test_compute_phase_amounts_even_split():
    """100000 at 40/30/30 divides exactly"""
    priced = compute_phase_amounts(phases_of(40, 30, 30), 100000)

    assert [p.amount for p in priced] == [40000, 30000, 30000]
    assert sum(p.amount for p in priced) == 100000


def test_compute_phase_amounts_uneven_percentages():
    """75000 at 33/33/34"""
    priced = compute_phase_amounts(phases_of(33, 33, 34), 75000)

    assert [p.amount for p in priced] == [24750, 24750, 25500]
    assert sum(p.amount for p in priced) == 75000


def test_compute_phase_amounts_rounds_each_phase_half_up():
    """No residual redistribution: each phase rounds on its own"""
    # 1001 * 50% = 500.5 -> 501 twice, total drifts by +1
    priced = compute_phase_amounts(phases_of(50, 50), 1001)

    assert [p.amount for p in priced] == [501, 501]
    assert sum(p.amount for p in priced) == 1002


@pytest.mark.parametrize(
    "percentages, approved",
    [
        ((33.3, 33.3, 33.4), 10000),
        ((12.5, 12.5, 25, 50), 99999),
        ((10,) * 10, 12345),
        ((1, 2, 3, 94), 777),
    ],
)
def test_rounding_drift_within_one_unit_per_phase(percentages, approved):
    priced = compute_phase_amounts(phases_of(*percentages), approved)

    assert abs(sum(p.amount for p in priced) - approved) <= len(percentages)


def test_compute_phase_amounts_keeps_phase_fields():
    phases = [DistributionPhase(description="Admission", percentage=100, days_from_approval=10, notes="Receipt needed")]
    priced = compute_phase_amounts(phases, 5000)[0]

    assert priced.description == "Admission"
    assert priced.days_from_approval == 10
    assert priced.notes == "Receipt needed"
    assert priced.amount == 5000


@pytest.mark.parametrize("amount", [0, -100])
def test_compute_phase_amounts_rejects_non_positive_amount(amount):
    with pytest.raises(InvalidAmountError):
        compute_phase_amounts(phases_of(100), amount)


def test_validate_distribution_total_valid():
    total = validate_distribution_total(phases_of(40, 30, 30), 100000)

    assert total.is_valid is True
    assert total.total_percentage == 100
    assert total.difference == 0
    assert total.total_amount == 100000


def test_validate_distribution_total_shortfall():
    total = validate_distribution_total(phases_of(40, 30), 100000)

    assert total.is_valid is False
    assert total.difference == -30
    assert total.total_amount == 70000


def test_validate_distribution_total_excess():
    total = validate_distribution_total(phases_of(60, 50))

    assert total.is_valid is False
    assert total.difference == 10
    assert total.total_amount is None


def test_validate_distribution_total_decimal_percentages():
    """33.3 + 33.3 + 33.4 is exactly 100, not 99.99999"""
    assert validate_distribution_total(phases_of(33.3, 33.3, 33.4)).is_valid is True


def test_validate_distribution_total_empty_is_invalid():
    assert validate_distribution_total([]).is_valid is False


def test_ensure_distribution_total_reports_shortfall():
    with pytest.raises(DistributionTotalError) as exc_info:
        ensure_distribution_total(phases_of(40, 30))

    assert exc_info.value.total_percentage == 70
    assert exc_info.value.difference == -30
    assert "30% short" in str(exc_info.value)


def test_ensure_distribution_total_reports_excess():
    with pytest.raises(DistributionTotalError) as exc_info:
        ensure_distribution_total(phases_of(70, 40))

    assert "10% over" in str(exc_info.value)


def test_ensure_distribution_total_accepts_exact_total():
    ensure_distribution_total(phases_of(25, 25, 50))


def test_round_half_up():
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("3.5")) == 4
    assert round_half_up(Decimal("2.49")) == 2


def test_validate_distribution_total_rejects_out_of_range_phase():
    """150 + -50 sums to 100 but neither phase is a valid share"""
    total = validate_distribution_total(phases_of(150, -50), 1000)

    assert total.total_percentage == 100
    assert total.is_valid is False


def test_ensure_distribution_total_reports_out_of_range_phase():
    with pytest.raises(PhasePercentageError) as exc_info:
        ensure_distribution_total(phases_of(150, -50))

    assert exc_info.value.description == "Phase 1"
    assert exc_info.value.percentage == 150


def test_phase_bounds_are_inclusive():
    assert validate_distribution_total(phases_of(100, 0)).is_valid is True
