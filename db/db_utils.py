# db/db_utils.py
"""
Engine, session and bulk-write helpers shared by the loader and the sinks.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


@lru_cache()
def _cached_engine(url: str, echo: bool) -> Engine:
    return create_engine(url, echo=echo, future=True)


def get_engine(url: Optional[str] = None) -> Engine:
    """
    Return a cached engine for ``url`` (defaults to the staging database).
    """
    from payroll_etl.common.config import get_settings

    settings = get_settings()
    return _cached_engine(url or settings.staging_database_url, settings.sqlalchemy_echo)


def get_session(engine: Optional[Engine] = None) -> Session:
    """Open a session bound to ``engine`` (defaults to the staging database)."""
    return SessionLocal(bind=engine or get_engine())


def create_tables(engine: Engine, *table_classes) -> None:
    """Create the tables behind the given models if they do not exist."""
    for table_class in table_classes:
        table_class.__table__.create(engine, checkfirst=True)


def truncate_table(session: Session, table) -> None:
    """
    Remove every row from ``table`` inside the session's transaction.
    Uses TRUNCATE on PostgreSQL and DELETE elsewhere.
    """
    dialect = session.get_bind().dialect
    if dialect.name == "postgresql":
        quoted = dialect.identifier_preparer.format_table(table)
        session.execute(text(f"TRUNCATE TABLE {quoted}"))
    else:
        session.execute(table.delete())


def dataframe_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame to insertable dicts, replacing NaN/NaT/NA with None."""
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def insert_dataframe(
    df: pd.DataFrame,
    table,
    session: Session,
    batch_size: int = 1000,
) -> int:
    """
    Insert a DataFrame into ``table`` in batches, committing after each batch.

    Returns:
        Number of records inserted
    """
    if df.empty:
        return 0

    records = dataframe_to_records(df)
    total = len(records)

    for i in range(0, total, batch_size):
        batch = records[i:i + batch_size]
        session.execute(table.insert(), batch)
        session.commit()
        logger.debug(f"  {table.name}: inserted batch {i // batch_size + 1} ({len(batch)} records)")

    return total
