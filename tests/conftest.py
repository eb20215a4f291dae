import asyncio
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import AsyncAdaptedQueuePool

from taskboard.database import Base
from taskboard.models.employee import Employee  # noqa: F401
from taskboard.models.organization import Organization  # noqa: F401
from taskboard.models.project import Project  # noqa: F401
from taskboard.models.task import Task, TaskAssignee  # noqa: F401


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "taskboard.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def db_url(db_path):
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture
def seed(db_path):
    engine = create_engine(f"sqlite:///{db_path}")

    def _seed(*objects):
        # seeded objects stay readable (ids etc.) after the session closes
        with Session(engine, expire_on_commit=False) as session:
            session.add_all(objects)
            session.commit()

    yield _seed
    engine.dispose()


@pytest.fixture
def run(db_url):
    """Run `fn(engine)` on a fresh event loop against the test database."""

    def _run(fn):
        async def main():
            engine = create_async_engine(db_url, poolclass=AsyncAdaptedQueuePool)
            try:
                return await fn(engine)
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return _run
