# app/database.py
"""
Ledger Store: database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL in production and SQLite for local runs and tests.

The store is an explicit handle. The application (or a test) builds one,
opens it, hands it to the LifecycleService, and closes it on shutdown.
All models are auto-imported in create_tables() so one call creates every table.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from app.config import settings
from app.exceptions import LedgerNotOpen
from app.utils.logger import get_logger

logger = get_logger(__name__)

Base = declarative_base()

# Dialects that honour SELECT ... FOR UPDATE; everything else uses the entity_locks table
ROW_LOCK_DIALECTS = {"postgresql", "mysql", "mariadb", "oracle"}


def supports_row_locks(db: Session) -> bool:
    return db.get_bind().dialect.name in ROW_LOCK_DIALECTS


class LedgerStore:
    """Owns the engine and session factory for one ledger database."""

    def __init__(self, database_url: str = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine = None
        self._session_factory = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> "LedgerStore":
        if self.engine is not None:
            return self
        if self.database_url.startswith("sqlite"):
            # SQLite needs check_same_thread=False for the threaded request handlers,
            # and a busy timeout so competing writers wait instead of failing
            self.engine = create_engine(
                self.database_url,
                connect_args={
                    "check_same_thread": False,
                    "timeout": settings.SQLITE_BUSY_TIMEOUT_SECONDS,
                },
                echo=settings.DB_ECHO,
            )
        else:
            self.engine = create_engine(
                self.database_url,
                pool_pre_ping=True,          # Auto-reconnect if DB connection drops
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                echo=settings.DB_ECHO,
            )
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info(f"Ledger store opened ({self.engine.dialect.name})")
        return self

    def close(self):
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        logger.info("Ledger store closed")

    @contextmanager
    def session(self):
        """Yield a session; roll back on error and always close it."""
        if self._session_factory is None:
            raise LedgerNotOpen("LedgerStore.open() has not been called")
        db = self._session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_db(self):
        """FastAPI dependency: yields a DB session and closes it after request."""
        with self.session() as db:
            yield db

    def ping(self):
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def create_tables(self):
        """
        Creates all DB tables. Safe to call multiple times.
        Import all models here so SQLAlchemy knows about them.
        """
        from app.models.occupant import Occupant              # noqa
        from app.models.resource import Resource              # noqa
        from app.models.checkout import Checkout              # noqa
        from app.models.checkin import CheckIn                # noqa
        from app.models.damage_report import DamageReport     # noqa
        from app.models.entity_lock import EntityLock         # noqa

        if self.engine is None:
            raise LedgerNotOpen("LedgerStore.open() has not been called")
        Base.metadata.create_all(bind=self.engine)
