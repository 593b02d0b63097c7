# ─────────────────────────────────────────────────────────────────
# database.py - Storage Wiring
#
# Owns the SQLAlchemy engine and the two long-lived objects built on
# top of it: the Schema Registry and the Entry Gateway. Routes get
# them through the FastAPI dependencies at the bottom of this file,
# which tests override to point at a throwaway in-memory database.
# ─────────────────────────────────────────────────────────────────

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from config import settings
from gateway import EntryGateway
from registry import SchemaRegistry
from schema import metadata

logger = logging.getLogger("database")


def build_engine(url: str) -> Engine:
    """
    Create an engine for `url`.

    SQLite connections are shared with FastAPI's worker threads and
    need foreign keys switched on per connection. In-memory SQLite
    uses a single shared connection so every request sees the same
    data.
    """
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_db(engine: Engine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    metadata.create_all(engine)
    logger.info(f"🗄️  Database ready at {engine.url.render_as_string(hide_password=True)}")


engine = build_engine(settings.database_url)
registry = SchemaRegistry(metadata)
gateway = EntryGateway(engine, registry)


def get_registry() -> SchemaRegistry:
    return registry


def get_gateway() -> EntryGateway:
    return gateway
