"""SQLAlchemy engine lifecycle and the dictionary unit of work."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from hanjadict.adapters.sqlalchemy.mappings import start_mappers
from hanjadict.adapters.sqlalchemy.migrations import upgrade_head
from hanjadict.adapters.sqlalchemy.repositories import (
    SqlAlchemyDictionaryRepository,
    SqlAlchemyReadingRepository,
)
from hanjadict.domain.ports.unit_of_work import DictionaryRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a unit of work is used outside its ``with`` block."""


def open_engine(database_uri: str, *, migrate: bool = True) -> Engine:
    """Create an engine with mappers configured and the schema at head."""

    engine = create_engine(database_uri, future=True)
    start_mappers()
    if migrate:
        upgrade_head(engine=engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


class SqlAlchemyDictionaryUnitOfWork:
    """One session (and transaction) around the dictionary repositories."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        self._session: Session | None = None
        self._repositories: DictionaryRepositories | None = None

    def __enter__(self) -> SqlAlchemyDictionaryUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = DictionaryRepositories(
            entries=SqlAlchemyDictionaryRepository(self._session),
            readings=SqlAlchemyReadingRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> DictionaryRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session


if TYPE_CHECKING:
    from hanjadict.domain.ports.unit_of_work import DictionaryUnitOfWork

    _uow_check: DictionaryUnitOfWork = SqlAlchemyDictionaryUnitOfWork(
        sessionmaker[Session]()
    )
