from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from app.database import _build_url, ensure_display_order_column


def test_build_url_adds_ssl_for_postgres_only():
    assert _build_url("postgresql://u:p@db/cms") == "postgresql://u:p@db/cms?sslmode=require"
    assert _build_url("postgresql://db/cms?x=1") == "postgresql://db/cms?x=1&sslmode=require"
    assert _build_url("postgresql://db/cms?sslmode=disable") == "postgresql://db/cms?sslmode=disable"
    assert _build_url("sqlite:///./cms.db") == "sqlite:///./cms.db"


def test_display_order_is_added_and_backfilled_newest_first():
    engine = create_engine("sqlite://", poolclass=StaticPool)
    with engine.begin() as conn:
        conn.exec_driver_sql(
            'CREATE TABLE posts (id INTEGER PRIMARY KEY, "type" TEXT, "createdAt" BIGINT, "updatedAt" BIGINT)'
        )
        conn.exec_driver_sql(
            'INSERT INTO posts (id, "type", "createdAt", "updatedAt") VALUES '
            "(1, 'cases', 100, 100), (2, 'cases', 300, 300), (3, 'cases', 200, 200), (4, 'news', 50, 50)"
        )

    ensure_display_order_column(engine)

    assert "display_order" in {c["name"] for c in inspect(engine).get_columns("posts")}
    with engine.connect() as conn:
        rows = dict(conn.exec_driver_sql("SELECT id, display_order FROM posts").all())
    assert rows == {2: 1, 3: 2, 1: 3, 4: 1}

    # second run is a no-op
    ensure_display_order_column(engine)


def test_ensure_display_order_without_posts_table():
    engine = create_engine("sqlite://", poolclass=StaticPool)
    ensure_display_order_column(engine)
    assert inspect(engine).get_table_names() == []
