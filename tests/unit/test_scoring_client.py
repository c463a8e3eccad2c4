"""Unit tests for the remote risk-scoring HTTP client"""

import json
import httpx
import pytest
from sacco_risk.infrastructure.clients.scoring import RiskScoringClient
from sacco_risk.domain.exceptions import NotFoundError, StoreError, ValidationError

SCORING_URL = "http://scoring.test/v1/risk-score"

GOOD_RESPONSE = {
    "score": 60.0,
    "riskCategory": "medium",
    "paymentHistoryScore": 100.0,
    "debtToIncomeRatio": 100.0,
    "loanAmountScore": 100.0,
    "guarantorScore": 0.0,
    "daysInArrearsScore": 100.0,
    "factors": {"totalLoans": 1, "guarantorCount": 0},
}


def client_for(handler) -> RiskScoringClient:
    return RiskScoringClient(url=SCORING_URL, timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_calculate_posts_boundary_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=GOOD_RESPONSE)

    result = await client_for(handler).calculate("client-1", "loan-1")

    assert seen["body"] == {"clientId": "client-1", "loanId": "loan-1"}
    assert result.score == 60.0
    assert result.risk_category == "medium"
    assert result.debt_to_income_ratio == 100.0
    assert result.factors["totalLoans"] == 1


@pytest.mark.asyncio
async def test_calculate_omits_missing_loan_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=GOOD_RESPONSE)

    await client_for(handler).calculate("client-1")

    assert seen["body"] == {"clientId": "client-1"}


@pytest.mark.asyncio
async def test_not_found_maps_to_not_found_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Client not found"})

    with pytest.raises(NotFoundError, match="Client not found"):
        await client_for(handler).calculate("missing")


@pytest.mark.asyncio
async def test_bad_request_maps_to_validation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "Loan does not belong to client"})

    with pytest.raises(ValidationError):
        await client_for(handler).calculate("client-1", "other-loan")


@pytest.mark.asyncio
async def test_server_error_maps_to_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    with pytest.raises(StoreError, match="500"):
        await client_for(handler).calculate("client-1")


@pytest.mark.asyncio
async def test_timeout_maps_to_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(StoreError, match="timeout"):
        await client_for(handler).calculate("client-1")


@pytest.mark.asyncio
async def test_malformed_body_maps_to_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"score": 10})

    with pytest.raises(StoreError, match="Invalid response"):
        await client_for(handler).calculate("client-1")
