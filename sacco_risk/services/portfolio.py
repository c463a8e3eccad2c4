"""Read-only portfolio views: summary totals, the loan list and loans in arrears"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sacco_risk.config import settings
from sacco_risk.domain.models import Client, Loan, Repayment, RiskScore, LOAN_STATUSES
from sacco_risk.domain.store import RecordStore, CLIENTS, LOANS, REPAYMENTS, RISK_SCORES
from sacco_risk.domain.exceptions import ValidationError
from sacco_risk.utils.date_utils import window_start

ZERO = Decimal("0")


@dataclass
class PortfolioSummary:
    total_clients: int
    active_loans: int
    total_disbursed: Decimal
    total_outstanding: Decimal
    loans_in_arrears: int
    total_arrears: Decimal
    recent_repayments: Decimal
    recent_window_days: int


@dataclass
class ArrearsCase:
    """Active loan in arrears with its client and latest repayments"""

    loan: Loan
    severity: str
    client: Optional[Client] = None
    recent_repayments: List[Repayment] = field(default_factory=list)


@dataclass
class LoanOverview:
    """Loan list row: the loan, its borrower and its latest risk score"""

    loan: Loan
    client: Optional[Client] = None
    risk_score: Optional[RiskScore] = None


def matches_search(loan: Loan, client: Optional[Client], search: str) -> bool:
    """Case-insensitive substring match on loan number, client name or member number"""
    term = search.strip().lower()
    if not term:
        return True
    candidates = [loan.loan_number]
    if client is not None:
        candidates += [client.first_name, client.last_name, client.full_name, client.member_number]
    return any(term in (value or "").lower() for value in candidates)


def average_days_overdue(loans: List[Loan]) -> int:
    """Mean days in arrears, rounded to a whole day; 0 for an empty list"""
    if not loans:
        return 0
    mean = Decimal(sum(loan.days_in_arrears for loan in loans)) / len(loans)
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def arrears_severity(days_in_arrears: int) -> str:
    """>90 critical, >60 severe, >30 high, otherwise moderate"""
    if days_in_arrears > 90:
        return "critical"
    if days_in_arrears > 60:
        return "severe"
    if days_in_arrears > 30:
        return "high"
    return "moderate"


class PortfolioService:
    def __init__(
        self,
        store: RecordStore,
        recent_window_days: Optional[int] = None,
        repayment_preview: Optional[int] = None,
    ):
        self.store = store
        self.recent_window_days = recent_window_days or settings.recent_repayment_window_days
        self.repayment_preview = repayment_preview or settings.arrears_repayment_preview

    def summary(self, today: Optional[date] = None) -> PortfolioSummary:
        """Portfolio totals. Outstanding and arrears only count active loans."""
        since = window_start(today or date.today(), self.recent_window_days)

        loans = self.store.list(LOANS)
        active = [loan for loan in loans if loan.status == "active"]
        in_arrears = [loan for loan in active if loan.days_in_arrears > 0]
        recent = [r for r in self.store.list(REPAYMENTS) if r.transaction_date >= since]

        return PortfolioSummary(
            total_clients=self.store.count(CLIENTS),
            active_loans=len(active),
            total_disbursed=sum((loan.principal_amount for loan in loans), ZERO),
            total_outstanding=sum((loan.outstanding_balance for loan in active), ZERO),
            loans_in_arrears=len(in_arrears),
            total_arrears=sum((loan.arrears_amount for loan in in_arrears), ZERO),
            recent_repayments=sum((r.amount for r in recent), ZERO),
            recent_window_days=self.recent_window_days,
        )

    def loans(self, status: Optional[str] = None, search: Optional[str] = None) -> List[LoanOverview]:
        """
        All loans newest first, each with its client and latest risk score.

        Args:
            status: Only loans in this status ("all" or None for every status)
            search: Substring of the loan number, client name or member number

        Raises:
            ValidationError: Unknown status
        """
        filters = {}
        if status and status != "all":
            if status not in LOAN_STATUSES:
                raise ValidationError(f"Unknown loan status: {status}")
            filters["status"] = status

        loans = self.store.list(LOANS, filters, order_by="created_at")
        client_ids = list({loan.client_id for loan in loans})
        clients = {c.id: c for c in self.store.list(CLIENTS, {"id": client_ids})} if client_ids else {}

        rows = []
        for loan in loans:
            client = clients.get(loan.client_id)
            if search and not matches_search(loan, client, search):
                continue
            latest = self.store.list(RISK_SCORES, {"loan_id": loan.id}, order_by="calculated_at", limit=1)
            rows.append(LoanOverview(loan=loan, client=client, risk_score=latest[0] if latest else None))
        return rows

    def loans_in_arrears(self) -> List[ArrearsCase]:
        """Active loans with days in arrears, most overdue first"""
        loans = self.store.list(LOANS, {"status": "active"}, order_by="days_in_arrears")
        cases = []
        for loan in loans:
            if loan.days_in_arrears <= 0:
                continue
            cases.append(
                ArrearsCase(
                    loan=loan,
                    severity=arrears_severity(loan.days_in_arrears),
                    client=self.store.get(CLIENTS, loan.client_id),
                    recent_repayments=self.loan_repayments(loan.id, limit=self.repayment_preview),
                )
            )
        return cases

    def loan_repayments(self, loan_id: str, limit: Optional[int] = None) -> List[Repayment]:
        """Repayments for a loan, newest first"""
        self.store.get(LOANS, loan_id)
        return self.store.list(REPAYMENTS, {"loan_id": loan_id}, order_by="transaction_date", limit=limit)
