"""Database engine, sessions and table definitions.

Storage is optional: when DATABASE_URL is not set, or the database cannot be
reached, every storage-backed operation in the pipeline logs and degrades to
its empty default instead of failing.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Sequence

from dotenv import load_dotenv
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from common.config import ConfigSingleton

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL_ENV = "DATABASE_URL"

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

metadata = MetaData()

documents = Table(
    "documents",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("url", String(2048), nullable=False),
    Column("category", String(64), nullable=False),
    Column("title", Text),
    Column("summary", Text),
    Column("agency", String(512)),
    Column("published_at", DateTime(timezone=True)),
    Column("embedding", JSON),
    Column("embedding_model", String(128)),
    UniqueConstraint("url", "category", name="uq_documents_url_category"),
)

document_scores = Table(
    "document_scores",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("url", String(2048), nullable=False),
    Column("category", String(64), nullable=False),
    Column("title", Text),
    Column("severity_score", Float, nullable=False),
    Column("final_score", Float, nullable=False),
    Column("capture_count", Integer, nullable=False),
    Column("drift_count", Integer, nullable=False),
    Column("warning_count", Integer, nullable=False),
    Column("suppressed_count", Integer, nullable=False),
    Column("document_class", String(64), nullable=False),
    Column("class_multiplier", Float, nullable=False),
    Column("is_high_authority", Boolean, nullable=False),
    Column("matches", JSON),
    Column("suppressed", JSON),
    Column("published_at", DateTime(timezone=True)),
    Column("scored_at", DateTime(timezone=True)),
    Column("week_of", String(10), nullable=False),
    UniqueConstraint("url", "category", name="uq_document_scores_url_category"),
)

weekly_aggregates = Table(
    "weekly_aggregates",
    metadata,
    Column("category", String(64), primary_key=True),
    Column("week_of", String(10), primary_key=True),
    Column("total_severity", Float, nullable=False),
    Column("document_count", Integer, nullable=False),
    Column("avg_severity_per_doc", Float, nullable=False),
    Column("capture_proportion", Float, nullable=False),
    Column("drift_proportion", Float, nullable=False),
    Column("warning_proportion", Float, nullable=False),
    Column("severity_mix", Float, nullable=False),
    Column("capture_match_count", Integer, nullable=False),
    Column("drift_match_count", Integer, nullable=False),
    Column("warning_match_count", Integer, nullable=False),
    Column("suppressed_match_count", Integer, nullable=False),
    Column("top_keywords", JSON),
    Column("computed_at", DateTime(timezone=True)),
)

baselines = Table(
    "baselines",
    metadata,
    Column("baseline_id", String(64), primary_key=True),
    Column("category", String(64), primary_key=True),
    Column("avg_weekly_severity", Float, nullable=False),
    Column("stddev_weekly_severity", Float, nullable=False),
    Column("avg_weekly_doc_count", Float, nullable=False),
    Column("avg_severity_mix", Float, nullable=False),
    Column("drift_noise_floor", Float),
    Column("embedding_centroid", JSON),
    Column("computed_at", DateTime(timezone=True)),
)

keyword_trends = Table(
    "keyword_trends",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("keyword", String(255), nullable=False),
    Column("category", String(64), nullable=False),
    Column("count", Integer, nullable=False),
    Column("baseline_avg", Float),
    Column("ratio", Float),
    Column("is_anomaly", Boolean, nullable=False),
    Column("period_start", DateTime(timezone=True), nullable=False),
    Column("period_end", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True)),
)


def is_db_available() -> bool:
    """Whether a database has been configured."""
    return bool(os.environ.get(DATABASE_URL_ENV))


def _create_engine() -> Engine:
    url = os.environ.get(DATABASE_URL_ENV)
    if not url:
        raise RuntimeError(f"{DATABASE_URL_ENV} is not set")
    logger.info("Creating database engine for %s", url.split("@")[-1])
    return create_engine(url, pool_pre_ping=True)


_engine_manager: ConfigSingleton[Engine] = ConfigSingleton(_create_engine)


def get_engine() -> Engine:
    return _engine_manager.get()


def reset_engine() -> None:
    """Dispose the current engine so the next access re-reads DATABASE_URL."""
    engine = _engine_manager.peek()
    if engine is not None:
        engine.dispose()
    _engine_manager.reset()


def init_tables() -> None:
    """Create all tables that don't exist yet."""
    metadata.create_all(get_engine())


def upsert_row(session: Session, table: Table, key_columns: Sequence[str], values: dict) -> None:
    """Insert a row, updating the given non-key columns on a key conflict.

    key_columns must be covered by a primary key or unique constraint.
    Columns absent from values keep their stored value on update.

    Raises:
        NotImplementedError: If the session's dialect has no ON CONFLICT insert
    """
    dialect = session.get_bind().dialect.name
    if dialect not in _DIALECT_INSERTS:
        raise NotImplementedError(f"Upsert not supported for dialect: {dialect}")

    stmt = _DIALECT_INSERTS[dialect](table).values(**values)
    updates = {name: stmt.excluded[name] for name in values if name not in key_columns}
    if updates:
        stmt = stmt.on_conflict_do_update(index_elements=list(key_columns), set_=updates)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(key_columns))
    session.execute(stmt)


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session bound to the configured engine, rolling back on error."""
    session = sessionmaker(bind=get_engine())()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
