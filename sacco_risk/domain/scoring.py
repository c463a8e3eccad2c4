"""Risk scoring engine - core business logic for loan risk classification"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sacco_risk.domain.models import Client, Loan
from sacco_risk.domain.exceptions import ComputationError


@dataclass(frozen=True)
class ScoringWeights:
    """Weight of each sub-score in the composite. Must sum to 1.0."""

    payment_history: float = 0.30
    debt_to_income: float = 0.25
    loan_amount: float = 0.20
    guarantor: float = 0.15
    arrears: float = 0.10

    def __post_init__(self) -> None:
        if any(w < 0 for w in self.as_dict().values()):
            raise ValueError("Scoring weights must be non-negative")
        if not math.isclose(self.total(), 1.0, abs_tol=1e-9):
            raise ValueError(f"Scoring weights must sum to 1.0, got {self.total()}")

    def as_dict(self) -> Dict[str, float]:
        return {
            "payment_history": self.payment_history,
            "debt_to_income": self.debt_to_income,
            "loan_amount": self.loan_amount,
            "guarantor": self.guarantor,
            "arrears": self.arrears,
        }

    def total(self) -> float:
        return math.fsum(self.as_dict().values())


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass
class ScoringSnapshot:
    """Everything the scorer reads, fetched before any computation"""

    client: Client
    loans: List[Loan]
    repayment_count: int
    loan: Optional[Loan] = None  # specific loan, only if it belongs to the client
    guarantor_count: int = 0


@dataclass
class SubScores:
    """Individual 0-100 sub-scores (plus the raw debt-to-income ratio)"""

    payment_history: float
    debt_to_income_ratio: float
    debt_to_income: float
    loan_amount: float
    guarantor: float
    days_in_arrears: float

    def rounded(self) -> "SubScores":
        return SubScores(
            payment_history=round(self.payment_history, 2),
            debt_to_income_ratio=round(self.debt_to_income_ratio, 2),
            debt_to_income=round(self.debt_to_income, 2),
            loan_amount=round(self.loan_amount, 2),
            guarantor=round(self.guarantor, 2),
            days_in_arrears=round(self.days_in_arrears, 2),
        )


@dataclass
class RiskAssessment:
    """Output of risk assessment"""

    score: float
    risk_category: str
    sub_scores: SubScores
    factors: Dict[str, Any]


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def payment_history_score(loans: List[Loan], repayment_count: int) -> float:
    """
    100 when nothing has been repaid yet, otherwise 100 - late_ratio * 100.

    late_ratio divides the number of active loans in arrears by the number of
    repayments across all the client's loans. Numerator and denominator count
    different things; kept as is until the product owners decide otherwise.
    """
    if repayment_count <= 0:
        return 100.0
    late_loans = sum(1 for loan in loans if loan.status == "active" and loan.days_in_arrears > 0)
    late_ratio = late_loans / repayment_count
    return _clamp(100 - late_ratio * 100)


def debt_to_income_ratio(loans: List[Loan], monthly_income: Decimal) -> float:
    """Active outstanding balance as a percentage of monthly income (100 when income <= 0)"""
    if monthly_income <= 0:
        return 100.0
    total_outstanding = sum((loan.outstanding_balance for loan in loans if loan.status == "active"), Decimal("0"))
    return float(total_outstanding / Decimal(monthly_income) * 100)


def debt_to_income_score(ratio: float) -> float:
    return _clamp(100 - ratio)


def loan_amount_score(loan: Optional[Loan], monthly_income: Decimal) -> float:
    """
    Principal as a multiple of annual income.

    Bands: >3x -> 20, >2x -> 40, >1x -> 60, >0.5x -> 80, else 100.
    No income counts as a 10x multiple. Without a specific loan: 100.
    """
    if loan is None:
        return 100.0

    if monthly_income > 0:
        income_multiple = float(Decimal(loan.principal_amount) / (Decimal(monthly_income) * 12))
    else:
        income_multiple = 10.0

    if income_multiple > 3:
        return 20.0
    elif income_multiple > 2:
        return 40.0
    elif income_multiple > 1:
        return 60.0
    elif income_multiple > 0.5:
        return 80.0
    return 100.0


def guarantor_score(guarantor_count: int) -> float:
    """3+ guarantors -> 100, 2 -> 70, 1 -> 40, none -> 0"""
    if guarantor_count >= 3:
        return 100.0
    elif guarantor_count == 2:
        return 70.0
    elif guarantor_count == 1:
        return 40.0
    return 0.0


def days_in_arrears_score(loan: Optional[Loan]) -> float:
    """
    Bands on the loan's days in arrears:
    >90 -> 0, >60 -> 20, >30 -> 40, >7 -> 60, >0 -> 80, 0 -> 100.
    Without a specific loan: 100.
    """
    if loan is None:
        return 100.0

    days = loan.days_in_arrears or 0
    if days > 90:
        return 0.0
    elif days > 60:
        return 20.0
    elif days > 30:
        return 40.0
    elif days > 7:
        return 60.0
    elif days > 0:
        return 80.0
    return 100.0


def composite_score(sub_scores: SubScores, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    """Weighted sum of the five sub-scores, rounded to 2 decimals"""
    score = (
        sub_scores.payment_history * weights.payment_history
        + sub_scores.debt_to_income * weights.debt_to_income
        + sub_scores.loan_amount * weights.loan_amount
        + sub_scores.guarantor * weights.guarantor
        + sub_scores.days_in_arrears * weights.arrears
    )
    if not math.isfinite(score):
        raise ComputationError(f"Composite score is not finite: {score}")

    return round(_clamp(score), 2)


def categorize_score(score: float) -> str:
    """
    Map composite score to a risk category.

    - below 40: very_high
    - 40 to below 60: high
    - 60 to below 75: medium
    - 75 and above: low
    """
    if score < 40:
        return "very_high"
    elif score < 60:
        return "high"
    elif score < 75:
        return "medium"
    else:
        return "low"


def assess_risk(snapshot: ScoringSnapshot, weights: ScoringWeights = DEFAULT_WEIGHTS) -> RiskAssessment:
    """
    Main entry point: derive sub-scores, composite and category from a snapshot.

    Pure function of the snapshot; the caller fetches and persists.
    """
    client = snapshot.client
    monthly_income = Decimal(client.monthly_income or 0)
    active_loans = [loan for loan in snapshot.loans if loan.status == "active"]
    closed_loans = [loan for loan in snapshot.loans if loan.status == "closed"]

    guarantor_count = snapshot.guarantor_count if snapshot.loan else 0

    ratio = debt_to_income_ratio(snapshot.loans, monthly_income)
    sub_scores = SubScores(
        payment_history=payment_history_score(snapshot.loans, snapshot.repayment_count),
        debt_to_income_ratio=ratio,
        debt_to_income=debt_to_income_score(ratio),
        loan_amount=loan_amount_score(snapshot.loan, monthly_income),
        guarantor=guarantor_score(guarantor_count),
        days_in_arrears=days_in_arrears_score(snapshot.loan),
    )

    # Composite from unrounded sub-scores; category from the rounded composite
    score = composite_score(sub_scores, weights)
    total_outstanding = sum((loan.outstanding_balance for loan in active_loans), Decimal("0"))

    return RiskAssessment(
        score=score,
        risk_category=categorize_score(score),
        sub_scores=sub_scores.rounded(),
        factors={
            "totalLoans": len(snapshot.loans),
            "activeLoans": len(active_loans),
            "closedLoans": len(closed_loans),
            "totalOutstanding": float(total_outstanding),
            "monthlyIncome": float(monthly_income),
            "guarantorCount": guarantor_count,
        },
    )
