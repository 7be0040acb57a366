"""Committee decision workflow and decision payload construction"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
from zakat_admin.domain.models import (
    Application,
    DecisionType,
    DistributionPhase,
    DistributionTotal,
    PhaseAmount,
    RecurringConfig,
    RecurringPeriod,
    ScheduledPayment,
)
from zakat_admin.domain.distribution import (
    compute_phase_amounts,
    ensure_distribution_total,
    round_half_up,
    validate_distribution_total,
)
from zakat_admin.domain.recurring import DEFAULT_GRACE_PERIOD_DAYS, compute_recurring_schedule
from zakat_admin.domain.exceptions import (
    InvalidAmountError,
    MissingCommentsError,
    ValidationError,
    WorkflowStateError,
)
from zakat_admin.utils.date_utils import add_days

DEFAULT_PHASE_DESCRIPTION = "First Installment"
DEFAULT_NUMBER_OF_PAYMENTS = 12


class WorkflowState(str, Enum):
    IDLE = "idle"
    DECISION_OPEN = "decision_open"
    TIMELINE_CONFIGURED = "timeline_configured"
    SUBMITTED = "submitted"


_EDITABLE_STATES = (WorkflowState.DECISION_OPEN, WorkflowState.TIMELINE_CONFIGURED)


def phase_to_payload(phase: PhaseAmount) -> Dict[str, Any]:
    return {
        "description": phase.description,
        "percentage": phase.percentage,
        "amount": phase.amount,
        "daysFromApproval": phase.days_from_approval,
        "expectedDate": phase.expected_date.isoformat() if phase.expected_date else None,
        "requiresVerification": phase.requires_verification,
        "notes": phase.notes,
    }


def payment_to_payload(payment: ScheduledPayment) -> Dict[str, Any]:
    return {
        "paymentNumber": payment.payment_number,
        "totalPayments": payment.total_payments,
        "cycleNumber": payment.cycle_number,
        "totalCycles": payment.total_cycles,
        "phaseNumber": payment.phase_number,
        "totalPhases": payment.total_phases,
        "scheduledDate": payment.due_date.isoformat(),
        "dueDate": payment.overdue_after.isoformat(),
        "amount": payment.amount,
        "description": payment.description,
    }


class DecisionWorkflow:
    """
    Approve/reject form behind the committee decision dialog.

    States:
        idle -> decision_open (approve | reject)
        decision_open -> timeline_configured (approve only)
        decision_open | timeline_configured -> submitted -> idle

    Submission is blocked while comments are blank or, for approvals, while
    the phase percentages do not total 100%. A failed upstream call leaves the
    form untouched so it can be corrected and resubmitted.
    """

    def __init__(
        self,
        today: date | None = None,
        start_offset_days: int = 7,
        grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS,
    ):
        self.today = today or date.today()
        self.start_offset_days = start_offset_days
        self.grace_period_days = grace_period_days
        self._reset()

    def _reset(self) -> None:
        self.state = WorkflowState.IDLE
        self.application: Optional[Application] = None
        self.decision: Optional[DecisionType] = None
        self.approved_amount: int = 0
        self.phases: List[DistributionPhase] = []
        self.recurring: Optional[RecurringConfig] = None
        self.last_error: Optional[str] = None

    @property
    def default_start_date(self) -> date:
        return add_days(self.today, self.start_offset_days)

    def open(self, application: Application, decision: DecisionType | str) -> None:
        """Start a decision; re-opening after a failed submission resumes the preserved form"""
        decision = DecisionType(decision)
        if self._is_resumable(application, decision):
            self.last_error = None
            return
        if self.state != WorkflowState.IDLE:
            raise WorkflowStateError(f"Cannot open a decision while {self.state.value}")

        self.application = application
        self.decision = decision
        self.approved_amount = application.requested_amount

        if self.decision == DecisionType.APPROVED:
            if application.distribution_timeline:
                self.phases = [replace(p) for p in application.distribution_timeline]
            else:
                self.phases = [DistributionPhase(description=DEFAULT_PHASE_DESCRIPTION, percentage=100)]

        self.state = WorkflowState.DECISION_OPEN

    def _is_resumable(self, application: Application, decision: DecisionType) -> bool:
        return (
            self.state in _EDITABLE_STATES
            and self.last_error is not None
            and self.application is not None
            and self.application.id == application.id
            and self.decision == decision
        )

    def default_recurring_config(self) -> RecurringConfig:
        return RecurringConfig(
            period=RecurringPeriod.MONTHLY,
            number_of_payments=DEFAULT_NUMBER_OF_PAYMENTS,
            start_date=self.default_start_date,
        )

    def configure(
        self,
        approved_amount: int | None = None,
        phases: Sequence[DistributionPhase] | None = None,
        recurring: RecurringConfig | None = None,
    ) -> None:
        """Set approved amount, timeline and optional recurring schedule"""
        if self.state not in _EDITABLE_STATES:
            raise WorkflowStateError(f"Cannot configure a timeline while {self.state.value}")
        if self.decision != DecisionType.APPROVED:
            raise WorkflowStateError("Distribution timeline applies to approvals only")

        if approved_amount is not None:
            self._check_amount(approved_amount)
            self.approved_amount = approved_amount
        if phases is not None:
            self.phases = list(phases)
        self.recurring = recurring

        self.state = WorkflowState.TIMELINE_CONFIGURED

    def _check_amount(self, amount: int) -> None:
        if amount is None or amount <= 0:
            raise InvalidAmountError("Approved amount must be greater than zero")
        if amount > self.application.requested_amount:
            raise InvalidAmountError(
                f"Approved amount {amount} exceeds requested amount {self.application.requested_amount}"
            )

    def distribution_total(self) -> DistributionTotal:
        return validate_distribution_total(self.phases, self.approved_amount or None)

    def can_submit(self, comments: str) -> bool:
        try:
            self.build_payload(comments)
        except (ValidationError, WorkflowStateError):
            return False
        return True

    def build_payload(self, comments: str) -> Dict[str, Any]:
        """
        Assemble the decision payload for the ERP API.

        Raises:
            WorkflowStateError: No open decision
            MissingCommentsError: Blank comments
            InvalidAmountError / DistributionTotalError / PhasePercentageError /
            InvalidRecurringConfigError:
                Approval form is not valid yet
        """
        if self.state not in _EDITABLE_STATES:
            raise WorkflowStateError(f"Nothing to submit while {self.state.value}")
        if not comments or not comments.strip():
            raise MissingCommentsError("Committee comments are required")

        payload: Dict[str, Any] = {
            "decision": self.decision.value,
            "comments": comments.strip(),
            "isRecurring": False,
            "recurringConfig": None,
            "distributionTimeline": None,
        }
        if self.decision == DecisionType.REJECTED:
            return payload

        self._check_amount(self.approved_amount)
        has_timeline = bool(self.phases)
        # Only a flat recurring schedule may go without phases
        if self.recurring is None or has_timeline:
            ensure_distribution_total(self.phases)
        timeline = None
        if has_timeline:
            timeline = [phase_to_payload(p) for p in compute_phase_amounts(self.phases, self.approved_amount)]
        payload["approvedAmount"] = self.approved_amount

        if self.recurring is None:
            payload["distributionTimeline"] = timeline
            return payload

        config = replace(self.recurring, has_distribution_timeline=has_timeline)
        schedule = compute_recurring_schedule(
            config,
            self.approved_amount,
            phases=self.phases if has_timeline else None,
            grace_period_days=self.grace_period_days,
            today=self.today,
        )
        if has_timeline:
            amount_per_payment = self.approved_amount
        else:
            amount_per_payment = config.amount_per_payment or round_half_up(
                Decimal(self.approved_amount) / Decimal(config.number_of_payments)
            )

        payload["isRecurring"] = True
        payload["recurringConfig"] = {
            "period": RecurringPeriod(config.period).value,
            "numberOfPayments": config.number_of_payments,
            "amountPerPayment": amount_per_payment,
            "startDate": config.start_date.isoformat(),
            "customAmounts": [
                {"paymentNumber": c.payment_number, "amount": c.amount, "description": c.description}
                for c in config.custom_amounts
            ],
            "hasDistributionTimeline": has_timeline,
            "distributionTimeline": timeline if has_timeline else None,
        }
        payload["paymentSchedule"] = [payment_to_payload(p) for p in schedule]
        return payload

    def mark_submitted(self) -> None:
        if self.state not in _EDITABLE_STATES:
            raise WorkflowStateError(f"Cannot submit while {self.state.value}")
        self.last_error = None
        self.state = WorkflowState.SUBMITTED

    def mark_failed(self, message: str) -> None:
        """Keep the form as-is so the user can retry"""
        self.last_error = message

    def close(self) -> None:
        self._reset()
