"""Data access layer for the decision submission ledger"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from zakat_admin.infrastructure.database.models import DecisionSubmission, SubmittedPayment


class SubmissionRepository:
    """Repository for forwarded committee decisions"""

    def __init__(self, db: Session):
        self.db = db

    def create_submission(
        self,
        application_id: str,
        payload: Dict[str, Any],
        upstream_success: bool,
        upstream_message: str | None = None,
        request_id: str | None = None,
    ) -> DecisionSubmission:
        """Persist the payload sent upstream together with its scheduled payments"""
        submission = DecisionSubmission(
            application_id=application_id,
            decision=payload["decision"],
            approved_amount=payload.get("approvedAmount"),
            is_recurring=bool(payload.get("isRecurring")),
            comments=payload["comments"],
            payload=payload,
            upstream_success=upstream_success,
            upstream_message=upstream_message,
            request_id=request_id,
        )
        self.db.add(submission)
        self.db.flush()  # Get ID without committing

        for item in payload.get("paymentSchedule") or []:
            self.db.add(
                SubmittedPayment(
                    submission_id=submission.id,
                    payment_number=item["paymentNumber"],
                    cycle_number=item["cycleNumber"],
                    phase_number=item.get("phaseNumber"),
                    due_date=date.fromisoformat(item["scheduledDate"]),
                    amount=item["amount"],
                    description=item["description"],
                )
            )

        return submission

    def get_submission_by_id(self, submission_id: uuid.UUID) -> Optional[DecisionSubmission]:
        """Fetch submission with its payments"""
        return (
            self.db.query(DecisionSubmission)
            .filter(DecisionSubmission.id == submission_id)
            .first()
        )

    def get_submissions_by_application(self, application_id: str, limit: int = 20) -> List[DecisionSubmission]:
        """Most recent submissions for an application"""
        return (
            self.db.query(DecisionSubmission)
            .filter(DecisionSubmission.application_id == application_id)
            .order_by(DecisionSubmission.created_at.desc())
            .limit(limit)
            .all()
        )
