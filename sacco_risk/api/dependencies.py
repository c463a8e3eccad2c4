"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from sacco_risk.infrastructure.database.session import get_db
from sacco_risk.infrastructure.database.repositories import SqlRecordStore
from sacco_risk.services.ledger_updater import LedgerUpdater
from sacco_risk.services.loans import LoanDisbursement
from sacco_risk.services.portfolio import PortfolioService
from sacco_risk.services.risk_scorer import RiskScorer


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_store(db: Session = Depends(get_db)) -> SqlRecordStore:
    """Record store bound to the request's database session"""
    return SqlRecordStore(db)


def get_risk_scorer(store: SqlRecordStore = Depends(get_store)) -> RiskScorer:
    return RiskScorer(store)


def get_ledger_updater(store: SqlRecordStore = Depends(get_store)) -> LedgerUpdater:
    return LedgerUpdater(store)


def get_loan_disbursement(
    store: SqlRecordStore = Depends(get_store),
    scorer: RiskScorer = Depends(get_risk_scorer),
) -> LoanDisbursement:
    return LoanDisbursement(store, scorer)


def get_portfolio_service(store: SqlRecordStore = Depends(get_store)) -> PortfolioService:
    return PortfolioService(store)
