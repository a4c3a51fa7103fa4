# auradhom/database.py
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

# Import models so SQLModel metadata is populated before create_all()
from auradhom.models import record as _record_models  # noqa: F401


def make_engine(url: str) -> Engine:
    """
    Create an engine for one of the local stores.

    SQLite connections are shared across FastAPI's worker threads,
    so same-thread checking is disabled for sqlite URLs.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        url,
        echo=False,  # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_db_and_tables(engine: Engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.
    """
    SQLModel.metadata.create_all(engine)


def open_session(engine: Engine) -> Session:
    """
    Session bound to a local store engine.

    Usage:

        with open_session(engine) as session:
            ...
    """
    return Session(engine)
