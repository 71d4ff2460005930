"""
Database models and manual datasource wiring
Nothing here connects at import time: the engine is built explicitly with
build_engine() and handed to the application factory, which owns its
lifecycle.
"""
import datetime
import os
from pathlib import Path
from typing import Optional

from fastapi import Request
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    JSON,
    String,
    create_engine,
    event,
    text,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from walkin.core.config import settings
from walkin.core.logger import get_logger

logger = get_logger("database")

Base = declarative_base()


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def as_utc(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    """SQLite hands timestamps back naive; they are always stored as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


class User(Base):
    """An employee or admin account"""
    __tablename__ = "users"

    uid = Column(String(32), primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="employee")  # "employee" or "admin"
    kakao_id = Column(String, nullable=True)
    profile_image = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    last_login_at = Column(DateTime(timezone=True), default=utcnow)


class OfficeLocation(Base):
    """An office and its check-in/check-out geofence radii"""
    __tablename__ = "offices"

    id = Column(String(32), primary_key=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False, default="")
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    check_in_radius = Column(Float, nullable=False, default=1000)
    check_out_radius = Column(Float, nullable=False, default=3000)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Attendance(Base):
    """One user's attendance for one business day, keyed {uid}_{date}"""
    __tablename__ = "attendance"

    id = Column(String, primary_key=True)
    uid = Column(String(32), index=True, nullable=False)
    name = Column(String, nullable=False)
    date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD, business timezone

    check_in_time = Column(DateTime(timezone=True), nullable=True)
    check_in_location = Column(JSON, nullable=True)
    check_in_status = Column(String, nullable=True)

    check_out_time = Column(DateTime(timezone=True), nullable=True)
    check_out_location = Column(JSON, nullable=True)
    check_out_status = Column(String, nullable=True)

    work_hours = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def check_in(self) -> Optional[dict]:
        if self.check_in_time is None:
            return None
        return {
            "time": as_utc(self.check_in_time),
            "location": self.check_in_location,
            "status": self.check_in_status,
        }

    @property
    def check_out(self) -> Optional[dict]:
        if self.check_out_time is None:
            return None
        return {
            "time": as_utc(self.check_out_time),
            "location": self.check_out_location,
            "status": self.check_out_status,
        }


class ApprovalRequest(Base):
    """An out-of-geofence exception request, keyed {uid}_{date}_{type}"""
    __tablename__ = "approvals"

    id = Column(String, primary_key=True)
    uid = Column(String(32), index=True, nullable=False)
    name = Column(String, nullable=False)
    date = Column(String(10), nullable=False)
    type = Column(String, nullable=False)  # "check_in" or "check_out"
    reason = Column(String, nullable=False)
    location = Column(JSON, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)
    reviewed_by = Column(String(32), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Optimize SQLite for concurrent access"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")  # Write-Ahead Logging
    cursor.execute("PRAGMA synchronous=NORMAL")  # Performance optimization
    cursor.close()


def _is_memory_database(database: Optional[str]) -> bool:
    return not database or database == ":memory:"


def _ensure_database_directory(engine: Engine) -> None:
    """Create the SQLite file's directory if it doesn't exist (works for both /app/data and ./data)"""
    if engine.url.get_backend_name() != "sqlite" or _is_memory_database(engine.url.database):
        return
    db_dir = os.path.dirname(engine.url.database)
    if db_dir:
        Path(db_dir).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured database directory exists: {db_dir}")


def build_engine(
    url: Optional[str] = None,
    pool_size: Optional[int] = None,
    echo: Optional[bool] = None,
) -> Engine:
    """Construct the application engine from an explicit URL.

    In-memory SQLite URLs get a single shared connection so every session
    sees the same database.
    """
    url = url or settings.DATABASE_URL
    pool_size = pool_size or settings.DATABASE_POOL_SIZE
    echo = settings.DATABASE_ECHO if echo is None else echo

    parsed = make_url(url)
    kwargs = {"echo": echo}

    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_database(parsed.database):
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = pool_size
    else:
        kwargs["pool_size"] = pool_size
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)
    if parsed.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _set_sqlite_pragma)

    logger.info(f"Datasource configured: {parsed.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


@retry(
    stop=stop_after_attempt(settings.DATABASE_CONNECT_RETRIES),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(OperationalError),
    reraise=True,
    before_sleep=lambda retry_state: logger.warning(
        f"Database connect retry {retry_state.attempt_number}: {retry_state.outcome.exception()}"
    )
)
def _verify_connection(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def init_db(engine: Engine, retries: Optional[int] = None) -> bool:
    """
    Initialize database tables - runs on app startup

    Args:
        retries: Connection attempts before giving up; defaults to
            DATABASE_CONNECT_RETRIES
    """
    retries = retries or settings.DATABASE_CONNECT_RETRIES
    try:
        logger.info(f"Initializing database at: {engine.url.render_as_string(hide_password=True)}")

        _ensure_database_directory(engine)
        _verify_connection.retry_with(stop=stop_after_attempt(retries))(engine)

        # Create all tables (idempotent - safe to call multiple times)
        Base.metadata.create_all(bind=engine)

        logger.info("✓ Database initialized and verified - tables ready for use")
        return True

    except Exception as e:
        logger.error(f"✗ Failed to initialize database: {e}")
        raise SystemExit(f"Database initialization failed: {e}")


def get_db_session(request: Request):
    """Dependency to get database session from the app's datasource"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
