from __future__ import annotations

import psycopg2
import pytest

from backoffice.db.postgres_store import PostgresRecordStore
from backoffice.db.record_store import StoreError


class DummyCursor:
    def __init__(self, fail_on: str | None = None) -> None:
        self.queries: list[tuple[str, object]] = []
        self.fail_on = fail_on
        self.description = [("id",), ("sku",)]
        self.rowcount = 1
        self.rows: list[tuple] = [(1, "A")]

    def execute(self, sql, params=None):
        self.queries.append((sql, params))
        if self.fail_on is not None and params and self.fail_on in params:
            raise psycopg2.IntegrityError("duplicate key value violates unique constraint")

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return self.rows


@pytest.fixture()
def batch_calls(monkeypatch):
    import backoffice.db.postgres_store as ps
    calls = []

    def fake_execute_values(cursor, sql, rows, page_size=1000):
        calls.append((sql, rows))
    monkeypatch.setattr(ps, "execute_values", fake_execute_values)
    return calls


def _sql(cur: DummyCursor) -> list[str]:
    return [q for q, _ in cur.queries]


def test_insert_many_batch(batch_calls):
    cur = DummyCursor()
    report = PostgresRecordStore(cur).insert_many("products", [{"sku": "A", "stock": 1}, {"sku": "B"}])
    assert report.inserted_rows == 2
    assert report.failures == []
    sql, rows = batch_calls[0]
    assert sql == 'INSERT INTO "products" ("sku","stock") VALUES %s'
    assert rows == [["A", 1], ["B", None]]
    assert _sql(cur) == ["SAVEPOINT bulk_insert", "RELEASE SAVEPOINT bulk_insert"]


def test_insert_many_empty(batch_calls):
    cur = DummyCursor()
    assert PostgresRecordStore(cur).insert_many("products", []).inserted_rows == 0
    assert batch_calls == []
    assert cur.queries == []


def test_insert_many_falls_back_to_row_inserts(monkeypatch):
    import backoffice.db.postgres_store as ps

    def failing_execute_values(cursor, sql, rows, page_size=1000):
        raise psycopg2.IntegrityError("duplicate key value violates unique constraint")
    monkeypatch.setattr(ps, "execute_values", failing_execute_values)

    cur = DummyCursor(fail_on="B")
    report = PostgresRecordStore(cur).insert_many("products", [{"sku": "A"}, {"sku": "B"}, {"sku": "C"}])

    assert report.inserted_rows == 2
    assert [f.index for f in report.failures] == [1]
    assert "duplicate key" in report.failures[0].message
    sql = _sql(cur)
    assert sql[:2] == ["SAVEPOINT bulk_insert", "ROLLBACK TO SAVEPOINT bulk_insert"]
    assert sql.count("ROLLBACK TO SAVEPOINT row_insert") == 1
    assert sql.count("RELEASE SAVEPOINT row_insert") == 2


def test_insert_one_returns_row():
    cur = DummyCursor()
    stored = PostgresRecordStore(cur).insert_one("products", {"sku": "A"})
    assert stored == {"id": 1, "sku": "A"}
    assert cur.queries[0] == ('INSERT INTO "products" ("sku") VALUES (%s) RETURNING *', ["A"])


def test_insert_one_wraps_driver_error():
    cur = DummyCursor(fail_on="B")
    with pytest.raises(StoreError, match="duplicate key") as exc:
        PostgresRecordStore(cur).insert_one("products", {"sku": "B"})
    assert isinstance(exc.value.__cause__, psycopg2.IntegrityError)


def test_invalid_identifier():
    with pytest.raises(StoreError, match="invalid identifier"):
        PostgresRecordStore(DummyCursor()).insert_one("products; drop", {"sku": "A"})


def test_update_one():
    cur = DummyCursor()
    PostgresRecordStore(cur).update_one("products", 1, {"stock": 4})
    assert cur.queries[0] == ('UPDATE "products" SET "stock" = %s WHERE id = %s RETURNING *', [4, 1])


def test_update_one_missing_record():
    cur = DummyCursor()
    cur.rows = []
    with pytest.raises(StoreError, match="no record"):
        PostgresRecordStore(cur).update_one("products", 9, {"stock": 4})


def test_delete_one_missing_record():
    cur = DummyCursor()
    cur.rowcount = 0
    with pytest.raises(StoreError, match="no record"):
        PostgresRecordStore(cur).delete_one("products", 9)


def test_list_all_filters_and_order():
    cur = DummyCursor()
    rows = PostgresRecordStore(cur).list_all("products", filters={"brand": "APPLE"}, order_by="-stock")
    assert rows == [{"id": 1, "sku": "A"}]
    assert cur.queries[0] == (
        'SELECT * FROM "products" WHERE "brand" = %s ORDER BY "stock" DESC NULLS LAST',
        ["APPLE"],
    )
