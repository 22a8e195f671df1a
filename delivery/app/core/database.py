from collections.abc import Generator
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from zoneinfo import ZoneInfo

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from delivery.app.core.config import settings
from delivery.app.core.errors import Conflict

_connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(
    settings.DATABASE_URL, echo=settings.SQL_ECHO, connect_args=_connect_args
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Q = Decimal("0.01")
ZERO = Decimal("0.00")


class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_conflict(db: Session, resource: str) -> None:
    """Commit the unit of work, turning lost races into ``Conflict``.

    Versioned rows raise ``StaleDataError`` when another writer bumped the
    revision first; unique indexes raise ``IntegrityError`` on a double insert.
    """
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise Conflict(
            f"{resource} was modified by another operator, reload and retry"
        ) from exc
    except IntegrityError as exc:
        db.rollback()
        raise Conflict(f"{resource} already exists") from exc


def money(value: Decimal | int | float | str) -> Decimal:
    """Quantize to cents. Floats go through ``str`` to avoid binary drift."""
    return Decimal(str(value)).quantize(Q, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def business_today() -> date:
    """Calendar day in the configured business timezone."""
    return datetime.now(ZoneInfo(settings.BUSINESS_TIMEZONE)).date()
