"""Risk scorer - gathers a client's portfolio state, scores it and appends the result"""

import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sacco_risk.config import settings
from sacco_risk.domain.models import RiskScore
from sacco_risk.domain.scoring import ScoringWeights, ScoringSnapshot, DEFAULT_WEIGHTS, assess_risk
from sacco_risk.domain.store import RecordStore, CLIENTS, LOANS, REPAYMENTS, GUARANTORS, RISK_SCORES
from sacco_risk.domain.exceptions import NotFoundError, ValidationError
from sacco_risk.infrastructure.observability.metrics import record_risk_score
from sacco_risk.infrastructure.observability.logging import log_risk_scored


def _canonical_id(value: str) -> Optional[str]:
    """Lower-case hyphenated form of a UUID string, None when malformed"""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None


class RiskScorer:
    """Computes and records composite risk scores for clients and loans"""

    def __init__(
        self,
        store: RecordStore,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        strict_loan_ownership: Optional[bool] = None,
    ):
        self.store = store
        self.weights = weights
        self.strict_loan_ownership = (
            settings.strict_loan_ownership if strict_loan_ownership is None else strict_loan_ownership
        )

    def gather(self, client_id: str, loan_id: Optional[str] = None) -> ScoringSnapshot:
        """
        Fetch everything scoring needs. Any store failure propagates, so
        scoring never runs on partial data.

        A loan_id that is not one of the client's loans is ignored (the
        loan-specific sub-scores keep their defaults) unless strict loan
        ownership is enabled, in which case it is a ValidationError.
        """
        client = self.store.get(CLIENTS, client_id)
        loans = self.store.list(LOANS, {"client_id": client.id})

        specific_loan = None
        if loan_id:
            wanted = _canonical_id(loan_id)
            specific_loan = next((loan for loan in loans if loan.id == wanted), None)
            if specific_loan is None and self.strict_loan_ownership:
                raise ValidationError(f"Loan {loan_id} does not belong to client {client_id}")

        repayment_count = self.store.count(REPAYMENTS, {"loan_id": [loan.id for loan in loans]})
        guarantor_count = (
            self.store.count(GUARANTORS, {"loan_id": specific_loan.id}) if specific_loan else 0
        )

        return ScoringSnapshot(
            client=client,
            loans=loans,
            repayment_count=repayment_count,
            loan=specific_loan,
            guarantor_count=guarantor_count,
        )

    def score(self, client_id: str, loan_id: Optional[str] = None, request_id: Optional[str] = None) -> RiskScore:
        """
        Score a client (optionally narrowed to one of their loans) and append
        the result to the risk score history.

        Raises:
            NotFoundError: Client does not exist
            ValidationError: loan_id not owned by client (strict mode only)
            StoreError: Record store failure (no score is written)
        """
        start_time = time.time()
        risk_score = self.record(client_id, loan_id)
        self.report(risk_score, start_time, request_id)
        return risk_score

    def record(self, client_id: str, loan_id: Optional[str] = None) -> RiskScore:
        """
        Compute and insert a score without emitting metrics or logs.

        Joins the caller's transaction when there is one; the caller then
        calls report() once that transaction has committed.
        """
        with self.store.transaction():
            snapshot = self.gather(client_id, loan_id)
            assessment = assess_risk(snapshot, self.weights)
            sub_scores = assessment.sub_scores

            risk_score = self.store.insert(
                RISK_SCORES,
                {
                    "client_id": snapshot.client.id,
                    "loan_id": snapshot.loan.id if snapshot.loan else None,
                    "score": assessment.score,
                    "risk_category": assessment.risk_category,
                    "payment_history_score": sub_scores.payment_history,
                    "debt_to_income_ratio": sub_scores.debt_to_income_ratio,
                    "debt_to_income_score": sub_scores.debt_to_income,
                    "loan_amount_score": sub_scores.loan_amount,
                    "guarantor_score": sub_scores.guarantor,
                    "days_in_arrears_score": sub_scores.days_in_arrears,
                    "factors": assessment.factors,
                    "calculated_at": datetime.now(timezone.utc),
                },
            )
        return risk_score

    def report(self, risk_score: RiskScore, start_time: float, request_id: Optional[str] = None) -> None:
        """Emit metrics and the audit log line for a committed score"""
        duration_ms = (time.time() - start_time) * 1000
        record_risk_score(risk_score.score, risk_score.risk_category)
        log_risk_scored(
            risk_score.client_id,
            risk_score.loan_id,
            risk_score.score,
            risk_score.risk_category,
            duration_ms,
            request_id,
        )

    def current_score(self, loan_id: str) -> RiskScore:
        """Most recent score recorded for a loan"""
        self.store.get(LOANS, loan_id)
        latest = self.store.list(RISK_SCORES, {"loan_id": loan_id}, order_by="calculated_at", limit=1)
        if not latest:
            raise NotFoundError(f"No risk score recorded for loan {loan_id}")
        return latest[0]

    def score_history(self, client_id: str, limit: int = 20) -> List[RiskScore]:
        """Scores recorded for a client, newest first"""
        self.store.get(CLIENTS, client_id)
        return self.store.list(RISK_SCORES, {"client_id": client_id}, order_by="calculated_at", limit=limit)
