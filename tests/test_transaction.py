import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import func, insert, select

from taskboard.models.organization import Organization
from taskboard.services.transaction import run_in_transaction


class FakeConnection:
    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on or {}

    async def _step(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def begin(self):
        await self._step("begin")

    async def commit(self):
        await self._step("commit")

    async def rollback(self):
        await self._step("rollback")

    async def close(self):
        await self._step("close")


class FakeEngine:
    def __init__(self, conn=None, connect_error=None):
        self.conn = conn
        self.connect_error = connect_error

    async def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        return self.conn


def _insert_org(name):
    async def work(conn):
        await conn.execute(insert(Organization.__table__).values(id=uuid4(), name=name))
        return name

    return work


async def _count_orgs(engine):
    async with engine.connect() as conn:
        return (await conn.execute(select(func.count()).select_from(Organization.__table__))).scalar_one()


def test_commits_and_returns_work_result(run):
    async def scenario(engine):
        result = await run_in_transaction(engine, _insert_org("Acme"))
        return result, await _count_orgs(engine), engine.sync_engine.pool.checkedout()

    result, count, checked_out = run(scenario)

    assert result == "Acme"
    assert count == 1
    assert checked_out == 0


def test_failed_work_rolls_back_and_releases_connection(run):
    boom = ValueError("boom")

    async def failing(conn):
        await _insert_org("Half written")(conn)
        raise boom

    async def scenario(engine):
        with pytest.raises(ValueError) as excinfo:
            await run_in_transaction(engine, failing)
        return excinfo.value, await _count_orgs(engine), engine.sync_engine.pool.checkedout()

    raised, count, checked_out = run(scenario)

    assert raised is boom
    assert count == 0
    assert checked_out == 0


def test_query_error_propagates_unwrapped(run):
    async def bad_query(conn):
        await conn.exec_driver_sql("SELECT * FROM no_such_table")

    async def scenario(engine):
        with pytest.raises(sa_exc.OperationalError):
            await run_in_transaction(engine, bad_query)
        return engine.sync_engine.pool.checkedout()

    assert run(scenario) == 0


def test_commit_failure_rolls_back():
    conn = FakeConnection(fail_on={"commit": RuntimeError("commit failed")})

    async def work(c):
        return 42

    with pytest.raises(RuntimeError, match="commit failed"):
        asyncio.run(run_in_transaction(FakeEngine(conn), work))

    assert conn.calls == ["begin", "commit", "rollback", "close"]


def test_connection_acquisition_failure_starts_no_transaction():
    engine = FakeEngine(connect_error=sa_exc.TimeoutError("pool exhausted"))
    called = []

    async def work(c):
        called.append(c)

    with pytest.raises(sa_exc.TimeoutError):
        asyncio.run(run_in_transaction(engine, work))

    assert called == []


def test_rollback_failure_keeps_original_error():
    conn = FakeConnection(fail_on={"rollback": RuntimeError("connection lost")})

    async def work(c):
        raise KeyError("original")

    with pytest.raises(KeyError, match="original"):
        asyncio.run(run_in_transaction(FakeEngine(conn), work))

    assert conn.calls == ["begin", "rollback", "close"]


def test_close_failure_keeps_original_error():
    conn = FakeConnection(fail_on={"close": RuntimeError("socket gone")})

    async def work(c):
        raise KeyError("original")

    with pytest.raises(KeyError, match="original"):
        asyncio.run(run_in_transaction(FakeEngine(conn), work))

    assert conn.calls == ["begin", "rollback", "close"]


def test_close_failure_after_commit_is_raised():
    conn = FakeConnection(fail_on={"close": RuntimeError("socket gone")})

    async def work(c):
        return 1

    with pytest.raises(RuntimeError, match="socket gone"):
        asyncio.run(run_in_transaction(FakeEngine(conn), work))

    assert conn.calls == ["begin", "commit", "close"]
