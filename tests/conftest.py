from __future__ import annotations

import os
from functools import partial
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from hanjadict.adapters.sqlalchemy import start_mappers
from hanjadict.adapters.sqlalchemy.migrations import upgrade_head
from hanjadict.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDictionaryUnitOfWork,
    create_session_factory,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from hanjadict.domain.ports import DictionaryUnitOfWorkFactory


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(sqlite_engine)


@pytest.fixture
def sqlite_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def uow_factory(session_factory: sessionmaker[Session]) -> DictionaryUnitOfWorkFactory:
    return partial(SqlAlchemyDictionaryUnitOfWork, session_factory)
