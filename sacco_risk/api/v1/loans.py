"""Loan endpoints - loan list, disbursement, repayments and current risk score"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Request

from sacco_risk.api.v1.schemas import (
    LoanCreateRequest,
    LoanCreateResponse,
    LoanListItem,
    LoanListResponse,
    LoanSchema,
    RepaymentRequest,
    RepaymentResponse,
    RepaymentListResponse,
    RepaymentSchema,
    RiskScoreResponse,
    RiskScoreRecordSchema,
)
from sacco_risk.api.dependencies import (
    get_ledger_updater,
    get_loan_disbursement,
    get_portfolio_service,
    get_risk_scorer,
    get_request_id,
)
from sacco_risk.services.ledger_updater import LedgerUpdater
from sacco_risk.services.loans import LoanDisbursement
from sacco_risk.services.portfolio import PortfolioService
from sacco_risk.services.risk_scorer import RiskScorer

router = APIRouter()


@router.post("/loans", response_model=LoanCreateResponse, status_code=201)
def create_loan(
    request_body: LoanCreateRequest,
    request: Request,
    disbursement: LoanDisbursement = Depends(get_loan_disbursement),
):
    """
    Disburse a new loan and score it.

    The loan starts active with outstanding balance equal to the principal.
    Guarantors are attached before scoring so they count towards the score.
    """
    result = disbursement.disburse(
        client_id=request_body.client_id,
        loan_product=request_body.loan_product,
        principal_amount=request_body.principal_amount,
        interest_rate=request_body.interest_rate,
        loan_term_months=request_body.loan_term_months,
        purpose=request_body.purpose,
        guarantors=[g.model_dump() for g in request_body.guarantors],
        request_id=get_request_id(request),
    )
    return LoanCreateResponse(
        loan=LoanSchema.from_domain(result.loan),
        guarantor_count=len(result.guarantors),
        risk=RiskScoreResponse.from_domain(result.risk_score),
    )


@router.get("/loans", response_model=LoanListResponse)
def list_loans(
    status: Optional[str] = Query(None, description="Loan status, or 'all'"),
    search: Optional[str] = Query(None, description="Loan number, client name or member number"),
    portfolio: PortfolioService = Depends(get_portfolio_service),
):
    """All loans newest first, with borrower and latest risk score"""
    rows = portfolio.loans(status=status, search=search)
    items = [
        LoanListItem(
            loan=LoanSchema.from_domain(row.loan),
            client_name=row.client.full_name if row.client else None,
            member_number=row.client.member_number if row.client else None,
            risk=RiskScoreRecordSchema.from_domain(row.risk_score) if row.risk_score else None,
        )
        for row in rows
    ]
    return LoanListResponse(total_loans=len(items), loans=items)


@router.get("/loans/{loan_id}/risk-score", response_model=RiskScoreRecordSchema)
def get_current_risk_score(loan_id: str, scorer: RiskScorer = Depends(get_risk_scorer)):
    """Most recent risk score recorded for a loan"""
    return RiskScoreRecordSchema.from_domain(scorer.current_score(loan_id))


@router.post("/loans/{loan_id}/repayments", response_model=RepaymentResponse, status_code=201)
def record_repayment(
    loan_id: str,
    request_body: RepaymentRequest,
    request: Request,
    ledger: LedgerUpdater = Depends(get_ledger_updater),
):
    """Apply a repayment to the loan's balances and append it to the ledger"""
    result = ledger.record_payment(
        loan_id,
        request_body.amount,
        transaction_date=request_body.transaction_date,
        payment_method=request_body.payment_method,
        receipt_number=request_body.receipt_number,
        recorded_by=request_body.recorded_by,
        notes=request_body.notes,
        request_id=get_request_id(request),
    )
    return RepaymentResponse(
        loan=LoanSchema.from_domain(result.loan),
        repayment=RepaymentSchema.from_domain(result.repayment),
    )


@router.get("/loans/{loan_id}/repayments", response_model=RepaymentListResponse)
def list_repayments(
    loan_id: str,
    limit: int = Query(50, ge=1, le=500),
    portfolio: PortfolioService = Depends(get_portfolio_service),
):
    """Repayments for a loan, newest first"""
    repayments = portfolio.loan_repayments(loan_id, limit=limit)
    return RepaymentListResponse(
        loan_id=loan_id,
        repayments=[RepaymentSchema.from_domain(r) for r in repayments],
    )
