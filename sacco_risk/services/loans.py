"""Loan disbursement - the "new loan" action, followed by an immediate risk score"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence

from sacco_risk.domain.models import Guarantor, Loan, RiskScore
from sacco_risk.domain.store import RecordStore, CLIENTS, LOANS, GUARANTORS
from sacco_risk.domain.exceptions import ValidationError
from sacco_risk.services.risk_scorer import RiskScorer
from sacco_risk.utils.date_utils import add_months


@dataclass
class DisbursementResult:
    loan: Loan
    risk_score: RiskScore
    guarantors: List[Guarantor] = field(default_factory=list)


def generate_loan_number() -> str:
    return f"LN-{int(time.time() * 1000)}-{uuid.uuid4().hex[:4].upper()}"


class LoanDisbursement:
    """Creates active loans and scores them straight away"""

    def __init__(self, store: RecordStore, scorer: RiskScorer):
        self.store = store
        self.scorer = scorer

    def disburse(
        self,
        client_id: str,
        loan_product: str,
        principal_amount: Decimal,
        interest_rate: Decimal,
        loan_term_months: int,
        purpose: Optional[str] = None,
        guarantors: Sequence[Mapping[str, Any]] = (),
        disbursement_date: Optional[date] = None,
        request_id: Optional[str] = None,
    ) -> DisbursementResult:
        """
        Disburse a loan, attach its guarantors and score it.

        The loan goes straight to active with outstanding == principal. Loan,
        guarantors and the first risk score are written in one transaction.
        Scoring metrics and logs are emitted only after that transaction commits.

        Raises:
            ValidationError: Bad amounts, term or guarantor data
            NotFoundError: Client does not exist
        """
        principal_amount = Decimal(principal_amount)
        interest_rate = Decimal(interest_rate)
        if principal_amount <= 0:
            raise ValidationError("Principal amount must be greater than zero")
        if interest_rate < 0:
            raise ValidationError("Interest rate cannot be negative")
        if loan_term_months < 1:
            raise ValidationError("Loan term must be at least one month")
        if not loan_product:
            raise ValidationError("Loan product is required")
        for guarantor in guarantors:
            if not guarantor.get("guarantor_name") or not guarantor.get("guarantor_phone"):
                raise ValidationError("Guarantor name and phone are required")
            if Decimal(guarantor.get("guaranteed_amount") or 0) < 0:
                raise ValidationError("Guaranteed amount cannot be negative")

        disbursed_on = disbursement_date or date.today()
        start_time = time.time()

        with self.store.transaction():
            client = self.store.get(CLIENTS, client_id)
            loan = self.store.insert(
                LOANS,
                {
                    "client_id": client.id,
                    "loan_number": generate_loan_number(),
                    "loan_product": loan_product,
                    "principal_amount": principal_amount,
                    "interest_rate": interest_rate,
                    "loan_term_months": loan_term_months,
                    "disbursement_date": disbursed_on,
                    "maturity_date": add_months(disbursed_on, loan_term_months),
                    "purpose": purpose,
                    "status": "active",
                    "outstanding_balance": principal_amount,
                    "total_paid": Decimal("0"),
                    "arrears_amount": Decimal("0"),
                    "days_in_arrears": 0,
                    "version": 1,
                },
            )

            attached = [
                self.store.insert(
                    GUARANTORS,
                    {
                        "loan_id": loan.id,
                        "guarantor_client_id": guarantor.get("guarantor_client_id"),
                        "guarantor_name": guarantor["guarantor_name"],
                        "guarantor_phone": guarantor["guarantor_phone"],
                        "guarantor_relationship": guarantor.get("guarantor_relationship"),
                        "guaranteed_amount": Decimal(guarantor.get("guaranteed_amount") or 0),
                    },
                )
                for guarantor in guarantors
            ]

            risk_score = self.scorer.record(client.id, loan.id)

        self.scorer.report(risk_score, start_time, request_id)
        return DisbursementResult(loan=loan, risk_score=risk_score, guarantors=attached)
