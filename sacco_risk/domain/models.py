"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional


CLIENT_STATUSES = ("active", "inactive", "suspended")
LOAN_STATUSES = ("pending", "approved", "active", "closed", "written_off")
PAYMENT_METHODS = ("cash", "bank_transfer", "mobile_money", "salary_deduction")
RISK_CATEGORIES = ("low", "medium", "high", "very_high")
SCHEDULE_STATUSES = ("pending", "paid", "overdue", "partial")


@dataclass
class Client:
    """SACCO member"""

    id: str
    member_number: str
    first_name: str
    last_name: str
    phone: str
    national_id: str
    monthly_income: Decimal
    status: str  # active | inactive | suspended
    email: Optional[str] = None
    employer: Optional[str] = None
    joined_date: Optional[date] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class Loan:
    """Loan with its running ledger balances"""

    id: str
    client_id: str
    loan_number: str
    loan_product: str
    principal_amount: Decimal
    interest_rate: Decimal  # percent
    loan_term_months: int
    status: str  # pending | approved | active | closed | written_off
    outstanding_balance: Decimal
    total_paid: Decimal
    arrears_amount: Decimal
    days_in_arrears: int
    version: int = 1
    disbursement_date: Optional[date] = None
    maturity_date: Optional[date] = None
    purpose: Optional[str] = None


@dataclass
class Repayment:
    """Append-only ledger entry for one payment event"""

    id: str
    loan_id: str
    transaction_date: date
    amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    payment_method: str
    receipt_number: Optional[str] = None
    recorded_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Guarantor:
    """Person guaranteeing part of a loan"""

    id: str
    loan_id: str
    guarantor_name: str
    guarantor_phone: str
    guaranteed_amount: Decimal
    guarantor_client_id: Optional[str] = None
    guarantor_relationship: Optional[str] = None


@dataclass
class RiskScore:
    """Persisted output of one scoring run"""

    id: str
    client_id: str
    score: float
    risk_category: str
    payment_history_score: float
    debt_to_income_ratio: float
    debt_to_income_score: float
    loan_amount_score: float
    guarantor_score: float
    days_in_arrears_score: float
    calculated_at: datetime
    loan_id: Optional[str] = None
    factors: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LoanSchedule:
    """Single installment of an amortization schedule (not generated by this service)"""

    id: str
    loan_id: str
    installment_number: int
    due_date: date
    principal_due: Decimal
    interest_due: Decimal
    total_due: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    total_paid: Decimal
    status: str  # pending | paid | overdue | partial
