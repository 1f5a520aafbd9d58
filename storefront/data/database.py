# storefront/data/database.py
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.utils.settings import DATABASE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


class Database:
    """
    Explicit datastore handle: one engine plus its session factory.

    Built once by create_app() and kept on app.state, request handlers get
    sessions through storefront.api.deps.get_db.
    """

    def __init__(self, url: str | None = None, echo: bool = False):
        self.url = url or DATABASE_URL

        kwargs = {"echo": echo, "future": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.url or self.url.rstrip("/") == "sqlite:":
                #in-memory sqlite lives in a single connection
                kwargs["poolclass"] = StaticPool

        self.engine: Engine = create_engine(self.url, **kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _sqlite_foreign_keys)

    def create_all(self) -> None:
        # models must be imported before create_all so they are in Base.metadata
        import storefront.data.models  # noqa: F401

        logger.info(f"Creating tables: {sorted(Base.metadata.tables.keys())}")
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()


def _sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
