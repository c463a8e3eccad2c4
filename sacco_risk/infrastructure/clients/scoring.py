"""HTTP client for a remote risk-scoring service"""

import httpx
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from sacco_risk.domain.exceptions import NotFoundError, StoreError, ValidationError
from sacco_risk.config import settings


@dataclass
class RemoteRiskScore:
    """Risk score as returned by the scoring endpoint"""

    score: float
    risk_category: str
    payment_history_score: float
    debt_to_income_ratio: float
    loan_amount_score: float
    guarantor_score: float
    days_in_arrears_score: float
    factors: Dict[str, Any] = field(default_factory=dict)


class RiskScoringClient:
    """Client for the POST {clientId, loanId?} risk-scoring endpoint"""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.scoring_service_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def calculate(self, client_id: str, loan_id: Optional[str] = None) -> RemoteRiskScore:
        """
        Request a fresh risk score for a client, optionally for one loan.

        Raises:
            NotFoundError: Service reports the client does not exist
            ValidationError: Service rejected the request
            StoreError: On timeout, other HTTP errors, or invalid response
        """
        payload: Dict[str, Any] = {"clientId": client_id}
        if loan_id:
            payload["loanId"] = loan_id

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.url, json=payload)

                if response.status_code == 404:
                    raise NotFoundError(self._error_message(response))
                if response.status_code in (400, 422):
                    raise ValidationError(self._error_message(response))
                response.raise_for_status()
                data = response.json()

                return RemoteRiskScore(
                    score=float(data["score"]),
                    risk_category=data["riskCategory"],
                    payment_history_score=float(data["paymentHistoryScore"]),
                    debt_to_income_ratio=float(data["debtToIncomeRatio"]),
                    loan_amount_score=float(data["loanAmountScore"]),
                    guarantor_score=float(data["guarantorScore"]),
                    days_in_arrears_score=float(data["daysInArrearsScore"]),
                    factors=data.get("factors") or {},
                )

            except httpx.TimeoutException as e:
                raise StoreError(f"Scoring service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise StoreError(f"Scoring service error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise StoreError(f"Scoring service unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise StoreError(f"Invalid response from scoring service: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return response.text
