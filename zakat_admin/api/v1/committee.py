"""Committee approval endpoints: pending queue, decisions and the submission ledger"""

import time
import uuid
import logging
from dataclasses import asdict, replace
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from zakat_admin.api.v1.schemas import (
    ApplicationSummary,
    DecisionRequest,
    DecisionResponse,
    PaginationSchema,
    PendingApprovalsResponse,
    SubmissionHistoryResponse,
    SubmissionResponse,
    SubmittedPaymentSchema,
)
from zakat_admin.api.dependencies import get_erp_client, get_request_id
from zakat_admin.config import settings
from zakat_admin.infrastructure.database.session import get_db
from zakat_admin.infrastructure.database.models import DecisionSubmission
from zakat_admin.infrastructure.database.repositories import SubmissionRepository
from zakat_admin.infrastructure.clients.erp import ErpClient
from zakat_admin.domain.models import DecisionType
from zakat_admin.domain.workflow import DecisionWorkflow
from zakat_admin.domain.exceptions import ErpAPIError, ValidationError, WorkflowStateError
from zakat_admin.infrastructure.observability.metrics import record_decision, record_validation_failure
from zakat_admin.infrastructure.observability.logging import log_decision_submission

router = APIRouter()


def upstream_status(error: ErpAPIError) -> int:
    """HTTP status to report for an ERP failure"""
    if error.status_code is None:
        return 503
    if error.status_code in (401, 403, 404):
        return error.status_code
    return 502


def _success_message(payload: dict) -> str:
    config = payload.get("recurringConfig")
    if config and config["hasDistributionTimeline"]:
        phases = len(config["distributionTimeline"])
        return f"Application approved with {phases}-phase timeline recurring {config['numberOfPayments']} times"
    if config:
        return f"Application approved with {config['numberOfPayments']} recurring payments"
    return f"Application {payload['decision']} successfully"


def _submission_response(submission: DecisionSubmission) -> SubmissionResponse:
    return SubmissionResponse(
        submission_id=str(submission.id),
        application_id=submission.application_id,
        decision=submission.decision,
        approved_amount=submission.approved_amount,
        is_recurring=submission.is_recurring,
        upstream_success=submission.upstream_success,
        upstream_message=submission.upstream_message,
        created_at=submission.created_at.isoformat(),
        payments=[
            SubmittedPaymentSchema(
                payment_number=p.payment_number,
                cycle_number=p.cycle_number,
                phase_number=p.phase_number,
                due_date=p.due_date,
                amount=p.amount,
                description=p.description,
            )
            for p in submission.payments
        ],
    )


@router.get("/committee/pending", response_model=PendingApprovalsResponse)
async def get_pending_approvals(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=100),
    search: str | None = Query(None),
    erp_client: ErpClient = Depends(get_erp_client),
):
    """Applications forwarded from interviews and awaiting a committee decision"""
    try:
        applications, pagination = await erp_client.applications.list_pending_committee(
            page=page, limit=limit, search=search
        )
    except ErpAPIError as e:
        logging.error(f"ERP API error: {e}")
        raise HTTPException(status_code=upstream_status(e), detail=str(e))

    try:
        summaries = [ApplicationSummary(**asdict(app)) for app in applications]
    except PydanticValidationError as e:
        logging.error(f"Invalid application data from ERP API: {e}")
        raise HTTPException(status_code=502, detail="Invalid application data from ERP API")

    return PendingApprovalsResponse(
        applications=summaries,
        pagination=PaginationSchema(**asdict(pagination)),
    )


@router.post("/committee/{application_id}/decision", response_model=DecisionResponse)
async def submit_decision(
    application_id: str,
    request_body: DecisionRequest,
    request: Request,
    db: Session = Depends(get_db),
    erp_client: ErpClient = Depends(get_erp_client),
):
    """
    Record a committee approval or rejection.

    Flow:
    1. Load the application from the ERP API
    2. Open the decision workflow and apply the form values
    3. Validate and build the payload (phase total, comments, recurring bounds)
    4. Forward the payload to the ERP API
    5. Record the submission and its payment schedule in the ledger
    """
    start_time = time.time()
    request_id = get_request_id(request)
    workflow = DecisionWorkflow(
        start_offset_days=settings.recurring_start_offset_days,
        grace_period_days=settings.payment_grace_days,
    )
    repo = SubmissionRepository(db)

    try:
        application = await erp_client.applications.get_application(application_id)
        if application is None:
            raise HTTPException(status_code=404, detail="Application not found")

        workflow.open(application, request_body.decision)
        if request_body.decision == DecisionType.APPROVED:
            phases = None
            if request_body.phases is not None:
                phases = [p.to_domain() for p in request_body.phases]
            recurring = None
            if request_body.recurring is not None:
                recurring = request_body.recurring.to_domain()
                if recurring.start_date is None:
                    recurring = replace(recurring, start_date=workflow.default_start_date)
            workflow.configure(
                approved_amount=request_body.approved_amount,
                phases=phases,
                recurring=recurring,
            )

        payload = workflow.build_payload(request_body.comments)
        result = await erp_client.applications.committee_decision(application_id, payload)

        if not result.success:
            message = result.message or "Failed to process decision"
            workflow.mark_failed(message)
            repo.create_submission(application_id, payload, False, message, request_id)
            db.commit()
            raise HTTPException(status_code=502, detail=message)

        workflow.mark_submitted()
        submission = repo.create_submission(application_id, payload, True, result.message, request_id)
        db.commit()

        payment_count = len(payload.get("paymentSchedule") or [])
        record_decision(payload["decision"], payload["isRecurring"], bool(payload.get("distributionTimeline")))
        log_decision_submission(
            request_id,
            application_id,
            payload["decision"],
            True,
            payment_count,
            (time.time() - start_time) * 1000,
        )
        workflow.close()

        return DecisionResponse(
            submission_id=str(submission.id),
            application_id=application_id,
            decision=payload["decision"],
            message=_success_message(payload),
            is_recurring=payload["isRecurring"],
            payment_count=payment_count,
        )

    except HTTPException:
        raise

    except ValidationError as e:
        db.rollback()
        record_validation_failure(e)
        logging.warning(f"Decision rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except WorkflowStateError as e:
        db.rollback()
        logging.warning(f"Workflow state error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except ErpAPIError as e:
        db.rollback()
        workflow.mark_failed(str(e))
        logging.error(f"ERP API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=upstream_status(e), detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/committee/decisions/{submission_id}", response_model=SubmissionResponse)
def get_submission(submission_id: str, db: Session = Depends(get_db)):
    """Ledger entry with the payment schedule that was sent"""
    try:
        submission_uuid = uuid.UUID(submission_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid submission ID format")

    submission = SubmissionRepository(db).get_submission_by_id(submission_uuid)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    return _submission_response(submission)


@router.get("/committee/decisions", response_model=SubmissionHistoryResponse)
def get_submission_history(
    application_id: str = Query(..., description="Application identifier"),
    db: Session = Depends(get_db),
):
    """Recent decisions forwarded for an application, newest first"""
    submissions = SubmissionRepository(db).get_submissions_by_application(application_id, limit=20)
    return SubmissionHistoryResponse(
        application_id=application_id,
        submissions=[_submission_response(s) for s in submissions],
    )
