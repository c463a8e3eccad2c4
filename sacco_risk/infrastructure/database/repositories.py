"""Data access layer - SQLAlchemy implementation of the record store"""

import uuid
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Type
from sqlalchemy import select, update as sql_update, func, Uuid
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from sacco_risk.domain import store
from sacco_risk.domain.store import RecordStore
from sacco_risk.domain.models import Client, Loan, Repayment, Guarantor, RiskScore, LoanSchedule
from sacco_risk.domain.exceptions import NotFoundError, StoreError, ConcurrentUpdateError
from sacco_risk.infrastructure.database.models import (
    Base,
    ClientRecord,
    LoanRecord,
    RepaymentRecord,
    GuarantorRecord,
    RiskScoreRecord,
    LoanScheduleRecord,
)
from sacco_risk.infrastructure.observability.metrics import store_failures_counter

ENTITIES: Dict[str, Tuple[Type[Base], type]] = {
    store.CLIENTS: (ClientRecord, Client),
    store.LOANS: (LoanRecord, Loan),
    store.REPAYMENTS: (RepaymentRecord, Repayment),
    store.GUARANTORS: (GuarantorRecord, Guarantor),
    store.RISK_SCORES: (RiskScoreRecord, RiskScore),
    store.LOAN_SCHEDULES: (LoanScheduleRecord, LoanSchedule),
}


class _NoMatch(Exception):
    """A filter value can never match (e.g. malformed id)"""


class SqlRecordStore(RecordStore):
    """Record store backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            store_failures_counter.labels(action=action).inc()
            raise StoreError(f"Record store {action} failed: {e.__class__.__name__}") from e

    @contextmanager
    def transaction(self) -> Iterator["SqlRecordStore"]:
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            with self._translate_errors("commit"):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._depth = 0

    def get(self, entity: str, record_id: str, for_update: bool = False) -> Any:
        model, domain_cls = self._resolve(entity)
        try:
            pk = self._coerce(model, "id", record_id)
        except _NoMatch:
            raise NotFoundError(f"{entity} {record_id} not found")

        stmt = select(model).where(model.id == pk).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()

        with self._translate_errors("get"):
            row = self.db.execute(stmt).scalar_one_or_none()
            if row is None:
                raise NotFoundError(f"{entity} {record_id} not found")
            return self._to_domain(row, domain_cls)

    def list(
        self,
        entity: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Any]:
        model, domain_cls = self._resolve(entity)
        try:
            conditions = self._conditions(model, filters)
        except _NoMatch:
            return []

        stmt = select(model).where(*conditions)
        if order_by:
            column = self._column(model, order_by)
            # id as tie-breaker keeps "latest" queries stable
            if descending:
                stmt = stmt.order_by(column.desc(), model.id.desc())
            else:
                stmt = stmt.order_by(column.asc(), model.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._translate_errors("list"):
            rows = self.db.execute(stmt).scalars().all()
            return [self._to_domain(row, domain_cls) for row in rows]

    def count(self, entity: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        model, _ = self._resolve(entity)
        try:
            conditions = self._conditions(model, filters)
        except _NoMatch:
            return 0

        stmt = select(func.count()).select_from(model).where(*conditions)
        with self._translate_errors("count"):
            return self.db.execute(stmt).scalar_one()

    def insert(self, entity: str, fields: Dict[str, Any]) -> Any:
        model, domain_cls = self._resolve(entity)
        values = {name: self._coerce_strict(model, name, value) for name, value in fields.items()}

        with self._translate_errors("insert"):
            row = model(**values)
            self.db.add(row)
            self.db.flush()  # Get ID without committing
            return self._to_domain(row, domain_cls)

    def update(
        self,
        entity: str,
        record_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Any:
        model, _ = self._resolve(entity)
        try:
            pk = self._coerce(model, "id", record_id)
        except _NoMatch:
            raise NotFoundError(f"{entity} {record_id} not found")

        values = {name: self._coerce_strict(model, name, value) for name, value in fields.items()}
        stmt = sql_update(model).where(model.id == pk)
        if expected_version is not None:
            version = self._column(model, "version")
            stmt = stmt.where(version == expected_version)
            values["version"] = expected_version + 1

        with self._translate_errors("update"):
            result = self.db.execute(stmt.values(**values).execution_options(synchronize_session=False))

        if result.rowcount == 0:
            self.get(entity, record_id)  # NotFoundError if it is gone
            raise ConcurrentUpdateError(
                f"{entity} {record_id} changed since version {expected_version}"
            )
        return self.get(entity, record_id)

    def _resolve(self, entity: str) -> Tuple[Type[Base], type]:
        try:
            return ENTITIES[entity]
        except KeyError:
            raise ValueError(f"Unknown entity: {entity}") from None

    def _column(self, model: Type[Base], name: str) -> Any:
        try:
            return model.__table__.columns[name]
        except KeyError:
            raise ValueError(f"{model.__tablename__} has no field {name}") from None

    def _coerce(self, model: Type[Base], name: str, value: Any) -> Any:
        """Convert an id string to uuid.UUID for uuid columns; _NoMatch if malformed"""
        column = self._column(model, name)
        if value is None or not isinstance(column.type, Uuid) or isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value))
        except ValueError:
            raise _NoMatch(value) from None

    def _coerce_strict(self, model: Type[Base], name: str, value: Any) -> Any:
        try:
            return self._coerce(model, name, value)
        except _NoMatch:
            raise NotFoundError(f"Invalid reference {name}={value}") from None

    def _conditions(self, model: Type[Base], filters: Optional[Mapping[str, Any]]) -> List[ColumnElement]:
        conditions = []
        for name, value in (filters or {}).items():
            column = self._column(model, name)
            if isinstance(value, (set, frozenset, list, tuple)):
                members = []
                for member in value:
                    try:
                        members.append(self._coerce(model, name, member))
                    except _NoMatch:
                        continue
                if not members:
                    raise _NoMatch(name)
                conditions.append(column.in_(members))
            elif value is None:
                conditions.append(column.is_(None))
            else:
                conditions.append(column == self._coerce(model, name, value))
        return conditions

    def _to_domain(self, row: Base, domain_cls: type) -> Any:
        values = {}
        for f in dataclass_fields(domain_cls):
            value = getattr(row, f.name)
            values[f.name] = str(value) if isinstance(value, uuid.UUID) else value
        return domain_cls(**values)
