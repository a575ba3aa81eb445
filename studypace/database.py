from datetime import datetime, timezone
from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from studypace.config import settings

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if _is_sqlite else {}
)

if _is_sqlite:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

SessionLocal = sessionmaker(autoflush=False, bind=engine)

Base = declarative_base()


def dialect_insert(db: Session, model):
    """
    Return an INSERT construct that supports ON CONFLICT for the bound dialect.
    Unique-key writes go through this so concurrent requests collapse to one row.
    """
    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported on '{name}'")


def insert_if_absent(db: Session, model, index_elements: list[str], **values) -> bool:
    """
    INSERT .. ON CONFLICT DO NOTHING.
    Returns True when this call created the row, False when it already existed.
    NOTE: Caller must run db.commit() to persist changes.
    """
    stmt = dialect_insert(db, model).values(**values).on_conflict_do_nothing(
        index_elements=index_elements
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column stores UTC without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
