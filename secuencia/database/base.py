from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from secuencia.config import DATABASE_URL

Base = declarative_base()


def make_engine(url: str | None = None, echo: bool = False) -> Engine:
    engine = create_engine(url or DATABASE_URL, echo=echo)
    if engine.dialect.name == "sqlite":
        # SQLite leaves foreign keys off unless asked per connection.
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    # Register the mapped classes before creating their tables.
    from secuencia.database import models  # noqa: F401

    Base.metadata.create_all(engine)
