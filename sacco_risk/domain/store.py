"""Record store contract consumed by the ledger updater and risk scorer"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Dict, List, Mapping, Optional


# Entity names understood by every store implementation
CLIENTS = "clients"
LOANS = "loans"
REPAYMENTS = "repayments"
GUARANTORS = "guarantors"
RISK_SCORES = "risk_scores"
LOAN_SCHEDULES = "loan_schedules"


class RecordStore(ABC):
    """
    Minimal storage contract: get, list, insert, update, count.

    Filters map field names to values. A set, list or tuple value means
    membership, anything else means equality. Records are returned as
    domain dataclasses.
    """

    @abstractmethod
    def get(self, entity: str, record_id: str, for_update: bool = False) -> Any:
        """Fetch one record.

        Raises:
            NotFoundError: If no record has this id.
            StoreError: On storage failure.
        """

    @abstractmethod
    def list(
        self,
        entity: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """Fetch records matching all filters, optionally ordered and limited."""

    @abstractmethod
    def count(self, entity: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        """Count records matching all filters."""

    @abstractmethod
    def insert(self, entity: str, fields: Dict[str, Any]) -> Any:
        """Persist a new record and return it with its generated id."""

    @abstractmethod
    def update(
        self,
        entity: str,
        record_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Any:
        """Apply a partial update.

        With expected_version, the write only happens if the stored version
        still matches, and the version is bumped.

        Raises:
            NotFoundError: If no record has this id.
            ConcurrentUpdateError: If the version no longer matches.
        """

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Unit of work. Commits on success, rolls back on error. Nested use joins the outer one."""
