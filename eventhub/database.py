from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import declarative_base, sessionmaker
from supabase import create_client, Client
import os
from dotenv import load_dotenv
import logging

load_dotenv()

logger = logging.getLogger(__name__)

# Database URLs
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./eventhub.db")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")

# How long a statement may wait on a row/database lock before the store gives up
DB_LOCK_TIMEOUT_SECONDS = float(os.getenv("DB_LOCK_TIMEOUT_SECONDS", "10"))


def build_connect_args(database_url: str, lock_timeout: float = DB_LOCK_TIMEOUT_SECONDS) -> dict:
    """Driver options that bound how long a transaction can block on locks"""
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": lock_timeout}
    if database_url.startswith("postgresql"):
        lock_ms = int(lock_timeout * 1000)
        return {"options": f"-c lock_timeout={lock_ms} -c statement_timeout={lock_ms * 3}"}
    return {}


def _use_immediate_transactions(sqlite_engine) -> None:
    """Make every SQLite transaction take the write lock up front.

    pysqlite's own deferred BEGIN lets two connections hold read locks and
    then both try to upgrade, which SQLite reports as "database is locked"
    without waiting. BEGIN IMMEDIATE queues writers on the busy timeout instead.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(database_url: str = DATABASE_URL, **kwargs):
    """Create an engine for the given URL with the project's pool settings"""
    if database_url.startswith("sqlite"):
        sqlite_engine = create_engine(
            database_url, connect_args=build_connect_args(database_url), **kwargs
        )
        _use_immediate_transactions(sqlite_engine)
        return sqlite_engine

    return create_engine(
        database_url,
        connect_args=build_connect_args(database_url),
        pool_pre_ping=True,  # Good for PostgreSQL connections
        pool_recycle=300,  # Recycle connections every 5 minutes
        **kwargs,
    )


# SQLAlchemy setup
engine = create_db_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Supabase client setup (authentication only)
supabase: Client = None

if SUPABASE_URL and SUPABASE_ANON_KEY:
    supabase = create_client(SUPABASE_URL, SUPABASE_ANON_KEY)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_supabase() -> Client:
    """Get Supabase client for regular operations"""
    if not supabase:
        raise RuntimeError(
            "Supabase client not initialized. Check your environment variables."
        )
    return supabase


# Database initialization
def init_db(bind=None):
    """Initialize database tables"""
    # Register every model on the metadata before creating tables
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def check_db_connection(bind=None) -> dict:
    """Check database connectivity"""
    status = {"sqlalchemy": False, "supabase": supabase is not None}

    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        status["sqlalchemy"] = True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")

    return status
