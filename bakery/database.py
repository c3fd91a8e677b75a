# bakery/database.py
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from bakery.core.errors import StorageError

# ---------------------------------------------------------
# Supabase Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=1       : keep only 1 connection to the Supabase pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
#
# Supabase Session mode limits the number of clients. If each backend
# process opens many connections (SQLAlchemy default pool_size 5+),
# you can easily hit:
#   "MaxClientsInSessionMode: max clients reached"
# ---------------------------------------------------------


def build_engine(database_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for the given URL.

    Postgres URLs get `sslmode=require` and the single-connection pool;
    anything else (SQLite in tests, local tooling) uses driver defaults.
    """
    if not database_url.startswith("postgresql"):
        engine = create_engine(database_url, echo=False)
        if database_url.startswith("sqlite"):
            enable_sqlite_foreign_keys(engine)
        return engine

    db_url = database_url
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    return create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite only checks foreign keys when asked to, per connection."""

    @event.listens_for(engine, "connect")
    def _foreign_keys_on(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_and_tables(engine: Engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """
    FastAPI dependency that yields a SQLModel Session bound to the
    engine the app factory stored on `app.state`.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(request.app.state.engine) as session:
        yield session


@contextmanager
def storage_guard(session: Session, action: str):
    """
    Wrap a write sequence: SQLAlchemy failures roll back the session and
    surface as StorageError.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageError(f"Failed to {action}") from exc
