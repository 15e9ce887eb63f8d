from __future__ import annotations

import re
import time
from collections.abc import Mapping, Sequence
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from .record_store import InsertFailure, InsertReport, StoreError

"""PostgreSQL record store on a psycopg2 cursor.

insert_many first tries a single execute_values batch. If the database rejects
it, the batch is rolled back to its savepoint and every record is retried on
its own savepoint, so one bad row (duplicate SKU, constraint violation) does
not block the others. Transaction begin/commit stays with the caller.
"""

__all__ = [
    "PostgresRecordStore",
]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _ident(name: str) -> str:
    """Quote a table/column name after checking it is a plain identifier."""
    if not _IDENTIFIER.match(name):
        raise StoreError(f"invalid identifier: {name!r}")
    return f'"{name}"'


class PostgresRecordStore:
    def __init__(self, cursor: Any, page_size: int = 1000) -> None:
        self.cursor = cursor
        self.page_size = page_size

    def _row_to_dict(self, row: Sequence[Any] | None) -> dict[str, Any]:
        if row is None:
            return {}
        names = [d[0] for d in (self.cursor.description or [])]
        return dict(zip(names, row, strict=False))

    def _execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise StoreError(str(e).strip()) from e

    def insert_one(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        columns = list(record.keys())
        cols_sql = ",".join(_ident(c) for c in columns)
        placeholders = ",".join(["%s"] * len(columns))
        self._execute(
            f"INSERT INTO {_ident(table)} ({cols_sql}) VALUES ({placeholders}) RETURNING *",
            [record[c] for c in columns],
        )
        return self._row_to_dict(self.cursor.fetchone())

    def insert_many(self, table: str, records: Sequence[Mapping[str, Any]]) -> InsertReport:
        records = list(records)
        if not records:
            return InsertReport(inserted_rows=0)

        columns: list[str] = []
        for record in records:
            columns.extend(c for c in record if c not in columns)
        cols_sql = ",".join(_ident(c) for c in columns)
        base_sql = f"INSERT INTO {_ident(table)} ({cols_sql}) VALUES %s"
        rows = [[record.get(c) for c in columns] for record in records]

        start_time = time.time()
        self._execute("SAVEPOINT bulk_insert")
        try:
            execute_values(self.cursor, base_sql, rows, page_size=self.page_size)
        except psycopg2.Error:
            self._execute("ROLLBACK TO SAVEPOINT bulk_insert")
        else:
            self._execute("RELEASE SAVEPOINT bulk_insert")
            return InsertReport(inserted_rows=len(rows), elapsed_seconds=time.time() - start_time)

        # row by row fallback
        inserted = 0
        failures: list[InsertFailure] = []
        for index, record in enumerate(records):
            self._execute("SAVEPOINT row_insert")
            try:
                self.insert_one(table, record)
            except StoreError as e:
                self._execute("ROLLBACK TO SAVEPOINT row_insert")
                failures.append(InsertFailure(index=index, message=str(e)))
            else:
                self._execute("RELEASE SAVEPOINT row_insert")
                inserted += 1
        return InsertReport(
            inserted_rows=inserted, failures=failures, elapsed_seconds=time.time() - start_time
        )

    def update_one(self, table: str, record_id: Any, partial: Mapping[str, Any]) -> dict[str, Any]:
        if not partial:
            raise StoreError("update_one needs at least one column")
        assignments = ",".join(f"{_ident(c)} = %s" for c in partial)
        self._execute(
            f"UPDATE {_ident(table)} SET {assignments} WHERE id = %s RETURNING *",
            [*partial.values(), record_id],
        )
        row = self.cursor.fetchone()
        if row is None:
            raise StoreError(f"{table}: no record with id {record_id}")
        return self._row_to_dict(row)

    def delete_one(self, table: str, record_id: Any) -> None:
        self._execute(f"DELETE FROM {_ident(table)} WHERE id = %s", [record_id])
        if self.cursor.rowcount == 0:
            raise StoreError(f"{table}: no record with id {record_id}")

    def list_all(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        sql = f"SELECT * FROM {_ident(table)}"
        params: list[Any] = []
        if filters:
            sql += " WHERE " + " AND ".join(f"{_ident(c)} = %s" for c in filters)
            params.extend(filters.values())
        if order_by:
            direction = "DESC" if order_by.startswith("-") else "ASC"
            sql += f" ORDER BY {_ident(order_by.lstrip('-'))} {direction} NULLS LAST"
        self._execute(sql, params)
        return [self._row_to_dict(r) for r in self.cursor.fetchall()]
