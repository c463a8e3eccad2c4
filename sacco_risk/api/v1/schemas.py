"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sacco_risk.domain.models import Loan, Repayment, RiskScore


class RiskScoreRequest(BaseModel):
    """Request body for POST /v1/risk-score"""

    clientId: str = Field(..., min_length=1, description="Client identifier")
    loanId: Optional[str] = Field(default=None, description="Narrow loan-specific sub-scores to this loan")


class RiskScoreResponse(BaseModel):
    """Response for POST /v1/risk-score"""

    score: float
    riskCategory: str
    paymentHistoryScore: float
    debtToIncomeRatio: float
    loanAmountScore: float
    guarantorScore: float
    daysInArrearsScore: float
    factors: Dict[str, Any]

    @classmethod
    def from_domain(cls, risk_score: RiskScore) -> "RiskScoreResponse":
        return cls(
            score=risk_score.score,
            riskCategory=risk_score.risk_category,
            paymentHistoryScore=risk_score.payment_history_score,
            debtToIncomeRatio=risk_score.debt_to_income_ratio,
            loanAmountScore=risk_score.loan_amount_score,
            guarantorScore=risk_score.guarantor_score,
            daysInArrearsScore=risk_score.days_in_arrears_score,
            factors=risk_score.factors or {},
        )


class ErrorResponse(BaseModel):
    """Body of every non-2xx response"""

    error: str


class RiskScoreRecordSchema(BaseModel):
    """Stored risk score"""

    id: str
    client_id: str
    loan_id: Optional[str] = None
    score: float
    risk_category: str
    payment_history_score: float
    debt_to_income_ratio: float
    debt_to_income_score: float
    loan_amount_score: float
    guarantor_score: float
    days_in_arrears_score: float
    factors: Dict[str, Any] = {}
    calculated_at: datetime

    @classmethod
    def from_domain(cls, risk_score: RiskScore) -> "RiskScoreRecordSchema":
        return cls(
            id=risk_score.id,
            client_id=risk_score.client_id,
            loan_id=risk_score.loan_id,
            score=risk_score.score,
            risk_category=risk_score.risk_category,
            payment_history_score=risk_score.payment_history_score,
            debt_to_income_ratio=risk_score.debt_to_income_ratio,
            debt_to_income_score=risk_score.debt_to_income_score,
            loan_amount_score=risk_score.loan_amount_score,
            guarantor_score=risk_score.guarantor_score,
            days_in_arrears_score=risk_score.days_in_arrears_score,
            factors=risk_score.factors or {},
            calculated_at=risk_score.calculated_at,
        )


class RiskHistoryResponse(BaseModel):
    """Response for GET /v1/clients/{client_id}/risk-scores"""

    client_id: str
    scores: List[RiskScoreRecordSchema]


class GuarantorSchema(BaseModel):
    """Guarantor supplied with a new loan"""

    guarantor_name: str
    guarantor_phone: str
    guarantor_relationship: Optional[str] = None
    guarantor_client_id: Optional[str] = None
    guaranteed_amount: Decimal = Decimal("0")


class LoanCreateRequest(BaseModel):
    """Request body for POST /v1/loans"""

    client_id: str = Field(..., min_length=1)
    loan_product: str = Field(..., min_length=1)
    principal_amount: Decimal
    interest_rate: Decimal
    loan_term_months: int
    purpose: Optional[str] = None
    guarantors: List[GuarantorSchema] = []


class LoanSchema(BaseModel):
    """Loan with its running balances"""

    id: str
    client_id: str
    loan_number: str
    loan_product: str
    principal_amount: float
    interest_rate: float
    loan_term_months: int
    disbursement_date: Optional[date] = None
    maturity_date: Optional[date] = None
    purpose: Optional[str] = None
    status: str
    outstanding_balance: float
    total_paid: float
    arrears_amount: float
    days_in_arrears: int

    @classmethod
    def from_domain(cls, loan: Loan) -> "LoanSchema":
        return cls(
            id=loan.id,
            client_id=loan.client_id,
            loan_number=loan.loan_number,
            loan_product=loan.loan_product,
            principal_amount=loan.principal_amount,
            interest_rate=loan.interest_rate,
            loan_term_months=loan.loan_term_months,
            disbursement_date=loan.disbursement_date,
            maturity_date=loan.maturity_date,
            purpose=loan.purpose,
            status=loan.status,
            outstanding_balance=loan.outstanding_balance,
            total_paid=loan.total_paid,
            arrears_amount=loan.arrears_amount,
            days_in_arrears=loan.days_in_arrears,
        )


class LoanCreateResponse(BaseModel):
    """Response for POST /v1/loans"""

    loan: LoanSchema
    guarantor_count: int
    risk: RiskScoreResponse


class RepaymentRequest(BaseModel):
    """Request body for POST /v1/loans/{loan_id}/repayments"""

    amount: Decimal
    transaction_date: Optional[date] = None
    payment_method: str = "cash"
    receipt_number: Optional[str] = None
    recorded_by: Optional[str] = None
    notes: Optional[str] = None


class RepaymentSchema(BaseModel):
    """Single ledger entry"""

    id: str
    loan_id: str
    transaction_date: date
    amount: float
    principal_amount: float
    interest_amount: float
    payment_method: str
    receipt_number: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_domain(cls, repayment: Repayment) -> "RepaymentSchema":
        return cls(
            id=repayment.id,
            loan_id=repayment.loan_id,
            transaction_date=repayment.transaction_date,
            amount=repayment.amount,
            principal_amount=repayment.principal_amount,
            interest_amount=repayment.interest_amount,
            payment_method=repayment.payment_method,
            receipt_number=repayment.receipt_number,
            notes=repayment.notes,
        )


class RepaymentResponse(BaseModel):
    """Response for POST /v1/loans/{loan_id}/repayments"""

    loan: LoanSchema
    repayment: RepaymentSchema


class RepaymentListResponse(BaseModel):
    loan_id: str
    repayments: List[RepaymentSchema]


class PortfolioSummaryResponse(BaseModel):
    """Response for GET /v1/portfolio/summary"""

    total_clients: int
    active_loans: int
    total_disbursed: float
    total_outstanding: float
    loans_in_arrears: int
    total_arrears: float
    recent_repayments: float
    recent_window_days: int


class ArrearsItem(BaseModel):
    """Loan in arrears with client contact and last repayments"""

    loan: LoanSchema
    severity: str
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    recent_repayments: List[RepaymentSchema]


class ArrearsResponse(BaseModel):
    """Response for GET /v1/portfolio/arrears"""

    total_loans: int
    total_arrears: float
    avg_days_overdue: int
    loans: List[ArrearsItem]


class LoanListItem(BaseModel):
    """Loan with its borrower and latest risk score"""

    loan: LoanSchema
    client_name: Optional[str] = None
    member_number: Optional[str] = None
    risk: Optional[RiskScoreRecordSchema] = None


class LoanListResponse(BaseModel):
    """Response for GET /v1/loans"""

    total_loans: int
    loans: List[LoanListItem]
