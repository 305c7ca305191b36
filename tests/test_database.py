"""Transaction audit log persistence (kycgate/infrastructure/database.py) against a fake session."""

import logging
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import OperationalError

from kycgate.infrastructure import database
from kycgate.infrastructure.database import ApiTransactionLog


class FakeResult:

    def __init__(self, rows: list) -> None:
        self.rows = rows

    def scalars(self) -> "FakeResult":
        return self

    def all(self) -> list:
        return self.rows


class FakeSession:
    """Records what the audit code asks of an AsyncSession."""

    def __init__(self, fail_commit: bool = False, rows: list | None = None) -> None:
        self.fail_commit = fail_commit
        self.rows = rows or []
        self.added: list = []
        self.statements: list = []
        self.committed = False

    def add(self, record) -> None:
        self.added.append(record)

    async def commit(self) -> None:
        if self.fail_commit:
            raise OperationalError("INSERT INTO api_transaction_logs", {}, ConnectionError("connection reset"))
        self.committed = True

    async def execute(self, statement) -> FakeResult:
        self.statements.append(statement)
        return FakeResult(self.rows)

    async def get(self, model, key):
        return next((row for row in self.rows if row.id == key), None)


def use_session(monkeypatch, session: FakeSession, enabled: bool = True) -> None:
    @asynccontextmanager
    async def fake_get_session():
        yield session

    monkeypatch.setattr(database, "is_enabled", lambda: enabled)
    monkeypatch.setattr(database, "get_session", fake_get_session)


ROW = {
    "caller_id": "abcd***",
    "service": "pan",
    "endpoint": "POST /pan/verify",
    "request_payload": '{"panNumber": "AAAPLXXXX", "name": "John Doe"}',
    "response_data": '{"success": true}',
    "status": "success",
    "duration_ms": 87,
}


class TestRecordTransaction:

    @pytest.mark.asyncio
    async def test_row_written(self, monkeypatch) -> None:
        session = FakeSession()
        use_session(monkeypatch, session)

        await database.record_transaction(**ROW)

        assert session.committed
        [record] = session.added
        assert isinstance(record, ApiTransactionLog)
        assert record.auth_type == "api_key"
        assert record.caller_id == "abcd***"
        assert record.endpoint == "POST /pan/verify"
        assert record.request_payload == '{"panNumber": "AAAPLXXXX", "name": "John Doe"}'
        assert record.status == "success"
        assert record.duration_ms == 87

    @pytest.mark.asyncio
    async def test_database_error_logged_not_raised(self, monkeypatch, caplog) -> None:
        use_session(monkeypatch, FakeSession(fail_commit=True))

        with caplog.at_level(logging.ERROR, logger="kycgate.infrastructure.database"):
            await database.record_transaction(**ROW)

        assert "Failed to write transaction log for POST /pan/verify" in caplog.text

    @pytest.mark.asyncio
    async def test_disabled_writes_nothing(self, monkeypatch) -> None:
        session = FakeSession()
        use_session(monkeypatch, session, enabled=False)

        await database.record_transaction(**ROW)

        assert session.added == []


class TestQueries:

    @pytest.mark.asyncio
    async def test_list_applies_filters_newest_first(self, monkeypatch) -> None:
        session = FakeSession(rows=[ApiTransactionLog(id="row-1", **ROW)])
        use_session(monkeypatch, session)

        rows = await database.list_transactions(caller_id="abcd***", status="failure", limit=10)

        assert [row.id for row in rows] == ["row-1"]
        sql = str(session.statements[0].compile(compile_kwargs={"literal_binds": True}))
        assert "api_transaction_logs.caller_id = 'abcd***'" in sql
        assert "api_transaction_logs.status = 'failure'" in sql
        assert "api_transaction_logs.service" not in sql.split("WHERE", 1)[1]
        assert "ORDER BY api_transaction_logs.created_at DESC" in sql
        assert "LIMIT 10" in sql

    @pytest.mark.asyncio
    async def test_get_by_id(self, monkeypatch) -> None:
        use_session(monkeypatch, FakeSession(rows=[ApiTransactionLog(id="row-1", **ROW)]))

        assert (await database.get_transaction("row-1")).service == "pan"
        assert await database.get_transaction("row-2") is None

    def test_row_serialized_with_camel_case_keys(self) -> None:
        row = ApiTransactionLog(id="row-1", auth_type="api_key", **ROW)

        data = row.to_dict()

        assert data["callerId"] == "abcd***"
        assert data["durationMs"] == 87
        assert data["createdAt"] is None
