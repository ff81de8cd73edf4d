# app/database.py
import logging

from sqlalchemy import event, inspect
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# Connection
#
# - SQLite (local dev / tests): check_same_thread=False and
#   foreign keys switched on so translations cascade with posts.
# - Supabase Postgres: sslmode=require, single pooled connection
#   (session-mode pooler limits the number of clients).
# ---------------------------------------------------------


def _build_url(raw_url: str) -> str:
    if raw_url.startswith("postgresql") and "sslmode=" not in raw_url:
        separator = "&" if "?" in raw_url else "?"
        return f"{raw_url}{separator}sslmode=require"
    return raw_url


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless the pragma is set per connection."""
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


db_url = _build_url(settings.DATABASE_URL)

if db_url.startswith("sqlite"):
    engine = create_engine(
        db_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )

enable_sqlite_foreign_keys(engine)


def create_db_and_tables(target: Engine = engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(target)


def ensure_display_order_column(target: Engine = engine) -> None:
    """
    Bring a legacy `posts` table up to date for drag-and-drop ordering.

    - Adds `display_order` if it is missing.
    - Backfills it newest-first within each type (1 = newest).
    - Creates the order indexes.
    """
    inspector = inspect(target)
    if "posts" not in inspector.get_table_names():
        return

    columns = {col["name"] for col in inspector.get_columns("posts")}
    if "display_order" in columns:
        return

    logger.info("Adding posts.display_order column")
    with target.begin() as conn:
        conn.exec_driver_sql("ALTER TABLE posts ADD COLUMN display_order INTEGER DEFAULT 0")
        conn.exec_driver_sql(
            'UPDATE posts SET display_order = ('
            ' SELECT COUNT(*) FROM posts p2'
            ' WHERE p2."type" = posts."type"'
            ' AND (p2."createdAt" > posts."createdAt"'
            ' OR (p2."createdAt" = posts."createdAt" AND p2.id <= posts.id))'
            ')'
        )
        conn.exec_driver_sql(
            "CREATE INDEX IF NOT EXISTS idx_posts_display_order ON posts(display_order)"
        )
        conn.exec_driver_sql(
            'CREATE INDEX IF NOT EXISTS idx_posts_type_order ON posts("type", display_order)'
        )


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
