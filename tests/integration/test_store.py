"""Integration tests for the SQLAlchemy record store"""

import uuid
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from sacco_risk.domain.store import CLIENTS, LOANS, RISK_SCORES, LOAN_SCHEDULES
from sacco_risk.domain.exceptions import NotFoundError, ConcurrentUpdateError, StoreError
from sacco_risk.infrastructure.database.repositories import SqlRecordStore


def test_insert_returns_record_with_generated_id(store: SqlRecordStore, make_client):
    member = make_client(first_name="Njeri")

    fetched = store.get(CLIENTS, member.id)

    assert uuid.UUID(member.id)
    assert fetched.first_name == "Njeri"
    assert fetched.monthly_income == Decimal("5000.00")


def test_get_unknown_or_malformed_id_raises_not_found(store: SqlRecordStore):
    with pytest.raises(NotFoundError):
        store.get(CLIENTS, str(uuid.uuid4()))
    with pytest.raises(NotFoundError):
        store.get(CLIENTS, "not-a-uuid")


def test_list_filters_by_equality_and_membership(store: SqlRecordStore, make_client, make_loan):
    member = make_client()
    other = make_client()
    first = make_loan(member.id)
    second = make_loan(member.id, status="closed", outstanding_balance=Decimal("0"))
    make_loan(other.id)

    assert {loan.id for loan in store.list(LOANS, {"client_id": member.id})} == {first.id, second.id}
    assert [loan.id for loan in store.list(LOANS, {"client_id": member.id, "status": "active"})] == [first.id]
    assert len(store.list(LOANS, {"id": [first.id, second.id, "garbage"]})) == 2
    assert store.list(LOANS, {"id": []}) == []
    assert store.list(LOANS, {"client_id": "garbage"}) == []
    assert store.count(LOANS, {"client_id": member.id}) == 2
    assert store.count(LOANS) == 3


def test_list_orders_and_limits(store: SqlRecordStore, make_client, make_loan):
    member = make_client()
    for days in (5, 90, 31):
        make_loan(member.id, days_in_arrears=days)

    ordered = store.list(LOANS, order_by="days_in_arrears")
    assert [loan.days_in_arrears for loan in ordered] == [90, 31, 5]

    ascending = store.list(LOANS, order_by="days_in_arrears", descending=False, limit=2)
    assert [loan.days_in_arrears for loan in ascending] == [5, 31]


def test_latest_query_is_stable(store: SqlRecordStore, make_client):
    """Same 'latest' record on repeated reads, even with equal timestamps"""
    member = make_client()
    calculated_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    with store.transaction():
        for score in (50.0, 70.0):
            store.insert(
                RISK_SCORES,
                {
                    "client_id": member.id,
                    "score": score,
                    "risk_category": "high",
                    "payment_history_score": 100.0,
                    "debt_to_income_ratio": 0.0,
                    "debt_to_income_score": 100.0,
                    "loan_amount_score": 100.0,
                    "guarantor_score": 0.0,
                    "days_in_arrears_score": 100.0,
                    "factors": {},
                    "calculated_at": calculated_at,
                },
            )

    reads = [store.list(RISK_SCORES, {"client_id": member.id}, order_by="calculated_at", limit=1)[0].id for _ in range(3)]
    assert len(set(reads)) == 1


def test_update_with_matching_version_bumps_version(store: SqlRecordStore, make_client, make_loan):
    loan = make_loan(make_client().id)

    with store.transaction():
        updated = store.update(LOANS, loan.id, {"days_in_arrears": 12}, expected_version=1)

    assert updated.days_in_arrears == 12
    assert updated.version == 2


def test_update_with_stale_version_raises_conflict(store: SqlRecordStore, make_client, make_loan):
    loan = make_loan(make_client().id)
    with store.transaction():
        store.update(LOANS, loan.id, {"days_in_arrears": 3}, expected_version=1)

    with pytest.raises(ConcurrentUpdateError):
        with store.transaction():
            store.update(LOANS, loan.id, {"days_in_arrears": 99}, expected_version=1)

    assert store.get(LOANS, loan.id).days_in_arrears == 3


def test_update_unknown_record_raises_not_found(store: SqlRecordStore):
    with pytest.raises(NotFoundError):
        store.update(LOANS, str(uuid.uuid4()), {"days_in_arrears": 1}, expected_version=1)


def test_transaction_rolls_back_on_error(store: SqlRecordStore, make_client):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert(
                CLIENTS,
                {
                    "member_number": "M-9999",
                    "first_name": "Rolled",
                    "last_name": "Back",
                    "phone": "+254700000001",
                    "national_id": "ID999999",
                    "monthly_income": Decimal("100"),
                    "status": "active",
                },
            )
            raise RuntimeError("abort")

    assert store.list(CLIENTS, {"member_number": "M-9999"}) == []


def test_nested_transaction_joins_outer(store: SqlRecordStore, make_client, make_loan):
    loan = make_loan(make_client().id)

    with pytest.raises(RuntimeError):
        with store.transaction():
            with store.transaction():
                store.update(LOANS, loan.id, {"days_in_arrears": 50})
            raise RuntimeError("outer fails after inner finished")

    assert store.get(LOANS, loan.id).days_in_arrears == 0


def test_constraint_violation_raises_store_error(store: SqlRecordStore, make_client):
    member = make_client()

    with pytest.raises(StoreError):
        with store.transaction():
            store.insert(
                CLIENTS,
                {
                    "member_number": member.member_number,  # unique
                    "first_name": "Dup",
                    "last_name": "Licate",
                    "phone": "+254700000002",
                    "national_id": "ID000000",
                    "monthly_income": Decimal("0"),
                    "status": "active",
                },
            )


def test_schedule_entity_is_defined_but_empty(store: SqlRecordStore, make_client, make_loan):
    loan = make_loan(make_client().id)

    assert store.list(LOAN_SCHEDULES, {"loan_id": loan.id}) == []


def test_unknown_entity_or_field_is_a_programming_error(store: SqlRecordStore):
    with pytest.raises(ValueError):
        store.list("members")
    with pytest.raises(ValueError):
        store.list(LOANS, {"colour": "red"})
