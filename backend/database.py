# backend/database.py
from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from config import settings

# Adres bazy z konfiguracji (Azure / .env) lub domyślny SQLite (lokalnie)
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# SQLAlchemy wymaga postgresql:// zamiast postgres://
if SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, **kwargs):
    """Build an engine; SQLite connections get foreign key enforcement."""
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}  # Tylko dla SQLite
    else:
        connect_args = {}

    engine = create_engine(url, connect_args=connect_args, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = create_db_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Register every table on Base.metadata before creating them
    import models.users, models.product, models.cart, models.order, models.log  # noqa: F401
    Base.metadata.create_all(bind=engine)


@contextmanager
def transaction(db: Session):
    """
    Runs the enclosed statements as one all-or-nothing unit.

    Commits when the block exits normally and rolls back on any exception,
    which is re-raised unchanged. A scope opened inside another scope on the
    same session joins the outer one: only the outermost scope commits.
    """
    if db.info.get("transaction_scope"):
        yield db
        return

    db.info["transaction_scope"] = True
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop("transaction_scope", None)
