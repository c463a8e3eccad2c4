"""GET /v1/portfolio/* - portfolio summary and recovery worklist"""

from fastapi import APIRouter, Depends

from sacco_risk.api.v1.schemas import (
    ArrearsItem,
    ArrearsResponse,
    LoanSchema,
    PortfolioSummaryResponse,
    RepaymentSchema,
)
from sacco_risk.api.dependencies import get_portfolio_service
from sacco_risk.services.portfolio import PortfolioService, average_days_overdue

router = APIRouter()


@router.get("/portfolio/summary", response_model=PortfolioSummaryResponse)
def get_portfolio_summary(portfolio: PortfolioService = Depends(get_portfolio_service)):
    summary = portfolio.summary()
    return PortfolioSummaryResponse(
        total_clients=summary.total_clients,
        active_loans=summary.active_loans,
        total_disbursed=summary.total_disbursed,
        total_outstanding=summary.total_outstanding,
        loans_in_arrears=summary.loans_in_arrears,
        total_arrears=summary.total_arrears,
        recent_repayments=summary.recent_repayments,
        recent_window_days=summary.recent_window_days,
    )


@router.get("/portfolio/arrears", response_model=ArrearsResponse)
def get_loans_in_arrears(portfolio: PortfolioService = Depends(get_portfolio_service)):
    """
    Active loans in arrears, most overdue first.

    Returns:
        Each loan with severity, client contact and its last repayments
    """
    cases = portfolio.loans_in_arrears()
    items = [
        ArrearsItem(
            loan=LoanSchema.from_domain(case.loan),
            severity=case.severity,
            client_name=case.client.full_name if case.client else None,
            client_phone=case.client.phone if case.client else None,
            recent_repayments=[RepaymentSchema.from_domain(r) for r in case.recent_repayments],
        )
        for case in cases
    ]
    return ArrearsResponse(
        total_loans=len(items),
        total_arrears=sum(float(case.loan.arrears_amount) for case in cases),
        avg_days_overdue=average_days_overdue([case.loan for case in cases]),
        loans=items,
    )
