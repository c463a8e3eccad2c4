"""Repayment ledger arithmetic - applies one payment to a loan's running balances"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict
from sacco_risk.domain.models import Loan
from sacco_risk.domain.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class PaymentSplit:
    """Interest/principal decomposition of a payment"""

    amount: Decimal
    interest_amount: Decimal
    principal_amount: Decimal


@dataclass(frozen=True)
class LedgerUpdate:
    """New loan balances after a payment, plus the split to record"""

    outstanding_balance: Decimal
    total_paid: Decimal
    arrears_amount: Decimal
    days_in_arrears: int
    status: str
    split: PaymentSplit

    def loan_fields(self) -> Dict[str, Any]:
        return {
            "outstanding_balance": self.outstanding_balance,
            "total_paid": self.total_paid,
            "arrears_amount": self.arrears_amount,
            "days_in_arrears": self.days_in_arrears,
            "status": self.status,
        }


def validate_amount(amount: Decimal) -> Decimal:
    """Reject non-positive amounts and fractions of a cent"""
    if amount is None:
        raise ValidationError("Payment amount is required")
    try:
        amount = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Payment amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        # more digits than the decimal context can hold
        raise ValidationError("Payment amount is too large")
    if amount != quantized:
        raise ValidationError("Payment amount must have at most two decimal places")
    return quantized


def split_payment(amount: Decimal, interest_rate: Decimal) -> PaymentSplit:
    """
    Split a payment into interest and principal.

    interest = amount * rate / 100, rounded half-up to the cent. Principal is
    the remainder, so principal + interest == amount exactly. Principal goes
    negative when the rate exceeds 100%.
    """
    interest = (amount * Decimal(interest_rate) / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    return PaymentSplit(
        amount=amount,
        interest_amount=interest,
        principal_amount=amount - interest,
    )


def apply_repayment(loan: Loan, amount: Decimal) -> LedgerUpdate:
    """
    Compute the loan state after a payment of `amount`.

    Rules:
    - outstanding and arrears are reduced by the full amount, floored at zero
    - days_in_arrears is kept while arrears remain, reset once they are cleared
    - the loan closes when nothing is outstanding

    Raises:
        ValidationError: amount is not a positive cent value, or the loan is not active
    """
    amount = validate_amount(amount)
    if loan.status != "active":
        raise ValidationError(f"Loan {loan.loan_number} is {loan.status}, payments require an active loan")

    new_outstanding = max(ZERO, loan.outstanding_balance - amount)
    new_arrears = max(ZERO, loan.arrears_amount - amount)

    return LedgerUpdate(
        outstanding_balance=new_outstanding,
        total_paid=loan.total_paid + amount,
        arrears_amount=new_arrears,
        days_in_arrears=loan.days_in_arrears if new_arrears > 0 else 0,
        status="closed" if new_outstanding == 0 else "active",
        split=split_payment(amount, loan.interest_rate),
    )
