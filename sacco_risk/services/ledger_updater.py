"""Ledger updater - applies repayments to loan balances atomically"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sacco_risk.domain.ledger import apply_repayment, validate_amount
from sacco_risk.domain.models import Loan, Repayment, PAYMENT_METHODS
from sacco_risk.domain.store import RecordStore, LOANS, REPAYMENTS
from sacco_risk.domain.exceptions import ValidationError, ConcurrentUpdateError
from sacco_risk.services.locks import KeyedLocks, loan_locks
from sacco_risk.infrastructure.observability.metrics import record_repayment, ledger_conflict_counter
from sacco_risk.infrastructure.observability.logging import log_payment_recorded


@dataclass
class PaymentResult:
    """Loan after the payment and the repayment entry that was appended"""

    loan: Loan
    repayment: Repayment


class LedgerUpdater:
    """
    Records a repayment and updates the loan's running balances.

    The repayment insert and the loan update share one transaction. Updates
    to the same loan are serialized three ways: an in-process lock per loan,
    a row lock on the loan (SELECT ... FOR UPDATE where the database supports
    it) and a version check on write. A version mismatch raises
    ConcurrentUpdateError and writes nothing.
    """

    def __init__(self, store: RecordStore, locks: KeyedLocks = loan_locks):
        self.store = store
        self.locks = locks

    def record_payment(
        self,
        loan_id: str,
        amount: Decimal,
        transaction_date: Optional[date] = None,
        payment_method: str = "cash",
        receipt_number: Optional[str] = None,
        recorded_by: Optional[str] = None,
        notes: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> PaymentResult:
        """
        Apply one payment to a loan.

        Raises:
            ValidationError: Non-positive amount, unknown payment method or loan not active
            NotFoundError: Loan does not exist
            StoreError: Record store failure (nothing is written)
        """
        amount = validate_amount(amount)
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method: {payment_method}")

        with self.locks.hold(str(loan_id)):
            try:
                with self.store.transaction():
                    loan = self.store.get(LOANS, loan_id, for_update=True)
                    update = apply_repayment(loan, amount)

                    repayment = self.store.insert(
                        REPAYMENTS,
                        {
                            "loan_id": loan.id,
                            "transaction_date": transaction_date or date.today(),
                            "amount": update.split.amount,
                            "principal_amount": update.split.principal_amount,
                            "interest_amount": update.split.interest_amount,
                            "payment_method": payment_method,
                            "receipt_number": receipt_number,
                            "recorded_by": recorded_by,
                            "notes": notes,
                        },
                    )
                    updated_loan = self.store.update(
                        LOANS, loan.id, update.loan_fields(), expected_version=loan.version
                    )
            except ConcurrentUpdateError:
                ledger_conflict_counter.inc()
                raise

        record_repayment(float(amount), payment_method, closed=updated_loan.status == "closed")
        log_payment_recorded(
            loan_id=updated_loan.id,
            repayment_id=repayment.id,
            amount=float(amount),
            outstanding_balance=float(updated_loan.outstanding_balance),
            status=updated_loan.status,
            request_id=request_id,
        )
        return PaymentResult(loan=updated_loan, repayment=repayment)
