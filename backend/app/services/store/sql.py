from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import Date, DateTime, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, RemoteCallError, ValidationError
from app.models.audit_log import AuditLog
from app.models.profile import Profile
from app.models.time_log import TimeLog
from app.services.store.base import LIKE_ESCAPE, PROFILE_PREFIX, DataStore, Query, QueryResult


logger = logging.getLogger(__name__)

TABLES = {
    Profile.__tablename__: Profile,
    TimeLog.__tablename__: TimeLog,
    AuditLog.__tablename__: AuditLog,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce(column, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if isinstance(column.type, Date):
        return date.fromisoformat(value)
    if isinstance(column.type, DateTime):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


class SqlStore(DataStore):
    """Local SQLAlchemy backend with the same query semantics as the hosted API.

    Used for development and tests; it does not emulate row-level security,
    so callers scope member queries by ``user_id`` themselves.
    """

    name = "sql"

    def __init__(self, db: Session) -> None:
        self._db = db

    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise ValidationError(f"Unknown table {table}", field="table")
        return model

    def _column(self, model, name: str):
        if name.startswith(PROFILE_PREFIX):
            model, name = Profile, name[len(PROFILE_PREFIX):]
        column = getattr(model, name, None)
        if column is None:
            raise ValidationError(f"Unknown column {name}", field=name)
        return column

    def _row(self, obj, profile: Profile | None = None, profile_columns: tuple[str, ...] = ()) -> dict[str, Any]:
        mapper = obj.__mapper__
        row = {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}
        if profile is not None:
            row["profiles"] = {c: getattr(profile, c, None) for c in (profile_columns or ("email",))}
        return row

    def select(self, query: Query) -> QueryResult:
        model = self._model(query.table)
        joined = query.joins_profiles and model is not Profile
        stmt = select(model, Profile).join(Profile, Profile.id == model.user_id) if joined else select(model)
        for f in query.filters:
            column = self._column(model, f.column)
            value = _coerce(column, f.value)
            if f.op == "eq":
                stmt = stmt.where(column == value)
            elif f.op == "gte":
                stmt = stmt.where(column >= value)
            elif f.op == "lte":
                stmt = stmt.where(column <= value)
            elif f.op == "ilike":
                stmt = stmt.where(column.ilike(value, escape=LIKE_ESCAPE))
            else:
                raise ValidationError(f"Unsupported filter {f.op}", field=f.column)

        try:
            total = None
            if query.count:
                total = int(self._db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one() or 0)
            if query.order_by:
                column = self._column(model, query.order_by)
                stmt = stmt.order_by(column.desc() if query.descending else column.asc(), model.id.asc())
            if query.offset is not None:
                stmt = stmt.offset(query.offset)
            if query.limit is not None:
                stmt = stmt.limit(query.limit)
            result = self._db.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.exception("sql_store.select.error table=%s", query.table)
            raise RemoteCallError(f"select {query.table} failed") from exc

        rows = []
        for item in result:
            if joined:
                rows.append(self._row(item[0], item[1], query.profile_columns))
            else:
                rows.append(self._row(item[0]))
        return QueryResult(rows=rows, total=total)

    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        model = self._model(table)
        now = _utcnow()
        data = {k: _coerce(self._column(model, k), v) for k, v in values.items()}
        data.setdefault("id", str(uuid4()))
        for stamp in ("created_at", "updated_at"):
            if hasattr(model, stamp):
                data.setdefault(stamp, now)
        obj = model(**data)
        try:
            self._db.add(obj)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.exception("sql_store.insert.error table=%s", table)
            raise RemoteCallError(f"insert into {table} failed") from exc
        return self._row(obj)

    def update(self, table: str, row_id: str, values: dict[str, Any]) -> dict[str, Any]:
        model = self._model(table)
        try:
            obj = self._db.get(model, row_id)
            if obj is None:
                raise NotFoundError(f"{table} row {row_id} not found")
            for k, v in values.items():
                setattr(obj, k, _coerce(self._column(model, k), v))
            if hasattr(model, "updated_at"):
                obj.updated_at = _utcnow()
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.exception("sql_store.update.error table=%s id=%s", table, row_id)
            raise RemoteCallError(f"update {table} failed") from exc
        return self._row(obj)

    def delete(self, table: str, row_id: str) -> None:
        model = self._model(table)
        try:
            obj = self._db.get(model, row_id)
            if obj is None:
                raise NotFoundError(f"{table} row {row_id} not found")
            self._db.delete(obj)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.exception("sql_store.delete.error table=%s id=%s", table, row_id)
            raise RemoteCallError(f"delete from {table} failed") from exc
