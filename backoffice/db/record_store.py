from __future__ import annotations

import copy
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

"""Record store interface and in-memory implementation.

The store is the only place records are persisted; the import pipeline and the
pricing engine never reach it directly. Failures surface as StoreError and are
never retried here.

insert_many is best-effort and row-independent: a rejected record is reported
in InsertReport.failures and the remaining records are still attempted.
"""

__all__ = [
    "InMemoryRecordStore",
    "InsertFailure",
    "InsertReport",
    "RecordStore",
    "StoreError",
]


class StoreError(Exception):
    pass


@dataclass(frozen=True)
class InsertFailure:
    index: int  # position in the records passed to insert_many
    message: str


@dataclass(frozen=True)
class InsertReport:
    inserted_rows: int
    failures: list[InsertFailure] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def failed_rows(self) -> int:
        return len(self.failures)


class RecordStore(Protocol):
    """Persistence operations the back-office core relies on."""

    def insert_one(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        ...

    def insert_many(self, table: str, records: Sequence[Mapping[str, Any]]) -> InsertReport:
        ...

    def update_one(self, table: str, record_id: Any, partial: Mapping[str, Any]) -> dict[str, Any]:
        ...

    def delete_one(self, table: str, record_id: Any) -> None:
        ...

    def list_all(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        ...


def _sort_key(value: Any, descending: bool = False) -> tuple[int, Any]:
    # None sorts last in both directions, keeps mixed None/value columns comparable
    if value is None:
        return (0 if descending else 1, "")
    return (1 if descending else 0, value)


class InMemoryRecordStore:
    """Store used in mock mode (no database) and in tests.

    ``unique_keys`` maps a table to the columns that must be unique together,
    mimicking the constraints of the real schema (e.g. products.sku).
    """

    def __init__(self, unique_keys: Mapping[str, Sequence[str]] | None = None) -> None:
        self._tables: dict[str, list[dict[str, Any]]] = {}
        self._unique_keys = {t: tuple(cols) for t, cols in (unique_keys or {}).items()}

    def _rows(self, table: str) -> list[dict[str, Any]]:
        return self._tables.setdefault(table, [])

    def _check_unique(self, table: str, record: Mapping[str, Any], skip_id: Any = None) -> None:
        cols = self._unique_keys.get(table)
        if not cols:
            return
        key = tuple(record.get(c) for c in cols)
        for row in self._rows(table):
            if row["id"] != skip_id and tuple(row.get(c) for c in cols) == key:
                raise StoreError(
                    f"duplicate key value violates unique constraint on {table}({', '.join(cols)})"
                )

    def insert_one(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        self._check_unique(table, record)
        stored = {
            **copy.deepcopy(dict(record)),
            "id": str(uuid.uuid4()),
            "created_at": datetime.now(UTC).isoformat(),
        }
        self._rows(table).append(stored)
        return dict(stored)

    def insert_many(self, table: str, records: Sequence[Mapping[str, Any]]) -> InsertReport:
        start = datetime.now(UTC)
        inserted = 0
        failures: list[InsertFailure] = []
        for index, record in enumerate(records):
            try:
                self.insert_one(table, record)
            except StoreError as e:
                failures.append(InsertFailure(index=index, message=str(e)))
            else:
                inserted += 1
        elapsed = (datetime.now(UTC) - start).total_seconds()
        return InsertReport(inserted_rows=inserted, failures=failures, elapsed_seconds=elapsed)

    def _find(self, table: str, record_id: Any) -> dict[str, Any]:
        for row in self._rows(table):
            if row["id"] == record_id:
                return row
        raise StoreError(f"{table}: no record with id {record_id}")

    def update_one(self, table: str, record_id: Any, partial: Mapping[str, Any]) -> dict[str, Any]:
        row = self._find(table, record_id)
        merged = {**row, **partial, "id": row["id"]}
        self._check_unique(table, merged, skip_id=record_id)
        row.update(merged)
        return dict(row)

    def delete_one(self, table: str, record_id: Any) -> None:
        row = self._find(table, record_id)
        self._rows(table).remove(row)

    def list_all(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        rows = [
            dict(r) for r in self._rows(table)
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            column = order_by.lstrip("-")
            descending = order_by.startswith("-")
            rows.sort(key=lambda r: _sort_key(r.get(column), descending), reverse=descending)
        return rows
