"""Unit tests for repayment ledger arithmetic"""

import pytest
from decimal import Decimal
from sacco_risk.domain.ledger import apply_repayment, split_payment, validate_amount
from sacco_risk.domain.models import Loan
from sacco_risk.domain.exceptions import ValidationError


def make_loan(
    outstanding: str = "10000",
    total_paid: str = "0",
    arrears: str = "0",
    days_in_arrears: int = 0,
    interest_rate: str = "10",
    status: str = "active",
) -> Loan:
    return Loan(
        id="loan-1",
        client_id="client-1",
        loan_number="LN-0001",
        loan_product="development",
        principal_amount=Decimal("10000"),
        interest_rate=Decimal(interest_rate),
        loan_term_months=12,
        status=status,
        outstanding_balance=Decimal(outstanding),
        total_paid=Decimal(total_paid),
        arrears_amount=Decimal(arrears),
        days_in_arrears=days_in_arrears,
    )


def test_split_payment_at_ten_percent():
    """500 at 10% -> 50 interest, 450 principal"""
    split = split_payment(Decimal("500"), Decimal("10"))

    assert split.interest_amount == Decimal("50")
    assert split.principal_amount == Decimal("450")


@pytest.mark.parametrize(
    "amount,rate",
    [("333.33", "12.5"), ("0.01", "10"), ("1234.57", "3.75"), ("100", "0"), ("99.99", "33.3333")],
)
def test_split_payment_decomposition_is_exact(amount, rate):
    split = split_payment(Decimal(amount), Decimal(rate))

    assert split.principal_amount + split.interest_amount == Decimal(amount)
    assert split.interest_amount == split.interest_amount.quantize(Decimal("0.01"))


def test_split_payment_rate_over_100_gives_negative_principal():
    split = split_payment(Decimal("100"), Decimal("150"))

    assert split.interest_amount == Decimal("150")
    assert split.principal_amount == Decimal("-50")


@pytest.mark.parametrize("amount", ["500", "0.01", "9999.99", "10000"])
def test_partial_payment_reduces_outstanding_by_amount(amount):
    loan = make_loan(outstanding="10000", total_paid="250")

    update = apply_repayment(loan, Decimal(amount))

    assert update.outstanding_balance + Decimal(amount) == loan.outstanding_balance
    assert update.total_paid == loan.total_paid + Decimal(amount)
    assert (update.status == "closed") == (update.outstanding_balance == 0)


def test_overpayment_clears_outstanding_and_closes():
    loan = make_loan(outstanding="300")

    update = apply_repayment(loan, Decimal("500"))

    assert update.outstanding_balance == 0
    assert update.total_paid == Decimal("500")
    assert update.status == "closed"


def test_exact_payoff_closes_loan():
    update = apply_repayment(make_loan(outstanding="1200.50"), Decimal("1200.50"))

    assert update.outstanding_balance == 0
    assert update.status == "closed"


def test_partial_arrears_payment_keeps_days_in_arrears():
    loan = make_loan(arrears="300", days_in_arrears=20)

    update = apply_repayment(loan, Decimal("100"))

    assert update.arrears_amount == Decimal("200")
    assert update.days_in_arrears == 20
    assert update.status == "active"


def test_clearing_arrears_resets_days_in_arrears():
    loan = make_loan(arrears="300", days_in_arrears=45)

    update = apply_repayment(loan, Decimal("400"))

    assert update.arrears_amount == 0
    assert update.days_in_arrears == 0


def test_loan_fields_are_the_balance_columns():
    update = apply_repayment(make_loan(), Decimal("500"))

    assert update.loan_fields() == {
        "outstanding_balance": Decimal("9500"),
        "total_paid": Decimal("500"),
        "arrears_amount": Decimal("0"),
        "days_in_arrears": 0,
        "status": "active",
    }
    assert update.split.interest_amount == Decimal("50.00")


@pytest.mark.parametrize("amount", ["0", "-5", "0.001", "10.005"])
def test_invalid_amounts_rejected(amount):
    with pytest.raises(ValidationError):
        apply_repayment(make_loan(), Decimal(amount))


@pytest.mark.parametrize("amount", ["1e30", "Infinity", "NaN", "not-a-number"])
def test_unrepresentable_amounts_rejected(amount):
    with pytest.raises(ValidationError):
        validate_amount(amount)


def test_missing_amount_rejected():
    with pytest.raises(ValidationError):
        validate_amount(None)


@pytest.mark.parametrize("status", ["pending", "approved", "closed", "written_off"])
def test_payment_requires_active_loan(status):
    with pytest.raises(ValidationError):
        apply_repayment(make_loan(status=status), Decimal("100"))
