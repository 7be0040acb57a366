"""SQLAlchemy ORM models for the committee decision submission ledger"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Date, Integer, ForeignKey, Text, JSON, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class DecisionSubmission(Base):
    """Committee decision as forwarded to the ERP API"""

    __tablename__ = "decision_submission"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(Text, nullable=False, index=True)
    decision = Column(String(16), nullable=False)
    approved_amount = Column(BigInteger, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    comments = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False)
    upstream_success = Column(Boolean, nullable=False)
    upstream_message = Column(Text, nullable=True)
    request_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    payments = relationship(
        "SubmittedPayment",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="SubmittedPayment.payment_number",
    )


class SubmittedPayment(Base):
    """One scheduled payment sent with a recurring approval"""

    __tablename__ = "submitted_payment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    submission_id = Column(Uuid(as_uuid=True), ForeignKey("decision_submission.id", ondelete="CASCADE"), nullable=False)
    payment_number = Column(Integer, nullable=False)
    cycle_number = Column(Integer, nullable=False)
    phase_number = Column(Integer, nullable=True)
    due_date = Column(Date, nullable=False)
    amount = Column(BigInteger, nullable=False)
    description = Column(Text, nullable=False)

    submission = relationship("DecisionSubmission", back_populates="payments")
