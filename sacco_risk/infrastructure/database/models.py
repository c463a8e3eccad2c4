"""SQLAlchemy ORM models for the SACCO loan portfolio"""

import uuid
from sqlalchemy import Column, String, Numeric, DateTime, Date, Integer, ForeignKey, Text, JSON, Float, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(14, 2)


class ClientRecord(Base):
    """SACCO member"""

    __tablename__ = "clients"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_number = Column(String(32), nullable=False, unique=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(String(32), nullable=False)
    national_id = Column(String(32), nullable=False)
    employer = Column(Text, nullable=True)
    monthly_income = Column(MONEY, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="active")
    joined_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loans = relationship("LoanRecord", back_populates="client")


class LoanRecord(Base):
    """Loan with running ledger balances"""

    __tablename__ = "loans"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True)
    loan_number = Column(String(32), nullable=False, unique=True)
    loan_product = Column(Text, nullable=False)
    principal_amount = Column(MONEY, nullable=False)
    interest_rate = Column(Numeric(7, 4), nullable=False)
    loan_term_months = Column(Integer, nullable=False)
    disbursement_date = Column(Date, nullable=True)
    maturity_date = Column(Date, nullable=True)
    purpose = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending", index=True)
    outstanding_balance = Column(MONEY, nullable=False)
    total_paid = Column(MONEY, nullable=False, default=0)
    arrears_amount = Column(MONEY, nullable=False, default=0)
    days_in_arrears = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    client = relationship("ClientRecord", back_populates="loans")
    repayments = relationship("RepaymentRecord", back_populates="loan")
    guarantors = relationship("GuarantorRecord", back_populates="loan")


class RepaymentRecord(Base):
    """Append-only repayment ledger entry"""

    __tablename__ = "repayments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loans.id"), nullable=False, index=True)
    transaction_date = Column(Date, nullable=False)
    amount = Column(MONEY, nullable=False)
    principal_amount = Column(MONEY, nullable=False)
    interest_amount = Column(MONEY, nullable=False)
    payment_method = Column(String(32), nullable=False, default="cash")
    receipt_number = Column(Text, nullable=True)
    recorded_by = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("LoanRecord", back_populates="repayments")


class GuarantorRecord(Base):
    """Guarantor attached to a loan"""

    __tablename__ = "guarantors"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loans.id"), nullable=False, index=True)
    guarantor_client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=True)
    guarantor_name = Column(Text, nullable=False)
    guarantor_phone = Column(String(32), nullable=False)
    guarantor_relationship = Column(Text, nullable=True)
    guaranteed_amount = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan = relationship("LoanRecord", back_populates="guarantors")


class RiskScoreRecord(Base):
    """Append-only risk score history"""

    __tablename__ = "risk_scores"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loans.id"), nullable=True, index=True)
    score = Column(Float, nullable=False)
    risk_category = Column(String(16), nullable=False)
    payment_history_score = Column(Float, nullable=False)
    debt_to_income_ratio = Column(Float, nullable=False)
    debt_to_income_score = Column(Float, nullable=False)
    loan_amount_score = Column(Float, nullable=False)
    guarantor_score = Column(Float, nullable=False)
    days_in_arrears_score = Column(Float, nullable=False)
    factors = Column(JSON, nullable=True)
    calculated_at = Column(DateTime(timezone=True), nullable=False, index=True)


class LoanScheduleRecord(Base):
    """Amortization schedule line (not populated by this service)"""

    __tablename__ = "loan_schedules"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loans.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    principal_due = Column(MONEY, nullable=False)
    interest_due = Column(MONEY, nullable=False)
    total_due = Column(MONEY, nullable=False)
    principal_paid = Column(MONEY, nullable=False, default=0)
    interest_paid = Column(MONEY, nullable=False, default=0)
    total_paid = Column(MONEY, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="pending")
