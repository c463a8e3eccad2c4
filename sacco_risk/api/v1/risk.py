"""POST /v1/risk-score - risk scoring boundary, plus score history"""

from fastapi import APIRouter, Depends, Query, Request

from sacco_risk.api.v1.schemas import (
    RiskScoreRequest,
    RiskScoreResponse,
    RiskHistoryResponse,
    RiskScoreRecordSchema,
    ErrorResponse,
)
from sacco_risk.api.dependencies import get_risk_scorer, get_request_id
from sacco_risk.services.risk_scorer import RiskScorer

router = APIRouter()


@router.post(
    "/risk-score",
    response_model=RiskScoreResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def calculate_risk_score(
    request_body: RiskScoreRequest,
    request: Request,
    scorer: RiskScorer = Depends(get_risk_scorer),
):
    """
    Calculate and record a composite risk score.

    Flow:
    1. Fetch client, all their loans, repayment count and guarantors
    2. Derive the five sub-scores and the weighted composite
    3. Append the score to the client's history
    4. Return the score in the same shape it was recorded
    """
    risk_score = scorer.score(
        request_body.clientId,
        request_body.loanId,
        request_id=get_request_id(request),
    )
    return RiskScoreResponse.from_domain(risk_score)


@router.get("/clients/{client_id}/risk-scores", response_model=RiskHistoryResponse)
def get_risk_history(
    client_id: str,
    limit: int = Query(20, ge=1, le=100),
    scorer: RiskScorer = Depends(get_risk_scorer),
):
    """Retrieve a client's recorded risk scores, newest first"""
    scores = scorer.score_history(client_id, limit=limit)
    return RiskHistoryResponse(
        client_id=client_id,
        scores=[RiskScoreRecordSchema.from_domain(s) for s in scores],
    )
