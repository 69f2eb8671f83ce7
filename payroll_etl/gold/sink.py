# payroll_etl/gold/sink.py
"""
Dual Sink Writer - publish the payroll summary to every destination.

Each destination is replaced wholesale (truncate then insert). Writes are
independent: a failed destination never rolls back another one.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import pandas as pd
from sqlalchemy import select
from sqlalchemy.engine import Engine

from db.db_utils import create_tables, get_engine, get_session, insert_dataframe, truncate_table
from db.models import PayrollSummary, SUMMARY_COLUMNS
from payroll_etl.common.config import Settings, get_settings
from payroll_etl.common.exceptions import DestinationWriteError
from payroll_etl.common.logging import log_banner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SinkDestination:
    """A named database that receives a copy of the summary table."""
    name: str
    engine: Engine


def get_destinations(settings: Optional[Settings] = None) -> List[SinkDestination]:
    """Build the two configured destinations."""
    settings = settings or get_settings()
    return [
        SinkDestination(settings.sink_primary_name, get_engine(settings.sink_primary_url)),
        SinkDestination(settings.sink_secondary_name, get_engine(settings.sink_secondary_url)),
    ]


def write_summary_to_destination(
    summary_df: pd.DataFrame,
    destination: SinkDestination,
    batch_size: int = 1000,
) -> int:
    """
    Replace the summary table of one destination.

    Returns:
        Number of records written

    Raises:
        DestinationWriteError: If any part of the write fails
    """
    table = PayrollSummary.__table__
    logger.info(f"Writing {len(summary_df)} summary records to {destination.name}")

    session = get_session(destination.engine)
    try:
        create_tables(destination.engine, PayrollSummary)
        truncate_table(session, table)
        if summary_df.empty:
            session.commit()
            written = 0
        else:
            written = insert_dataframe(summary_df[list(SUMMARY_COLUMNS)], table, session, batch_size=batch_size)
    except Exception as e:
        logger.error(f"Write to {destination.name} failed: {e}")
        session.rollback()
        raise DestinationWriteError(
            f"Failed to write summary to {destination.name}",
            destination=destination.name,
            original_error=e,
        ) from e
    finally:
        session.close()

    logger.info(f"  {destination.name}: {written} records written")
    return written


def write_summary(
    summary_df: pd.DataFrame,
    destinations: Sequence[SinkDestination],
    batch_size: int = 1000,
) -> Dict[str, int]:
    """
    Write the summary to every destination concurrently.

    Returns:
        dict: Records written per destination

    Raises:
        DestinationWriteError: After all writes finished, if any destination
            failed. ``details`` holds the failed destinations and the counts of
            the ones that succeeded.
    """
    log_banner(logger, f"SINK: writing summary to {len(destinations)} destinations")

    written: Dict[str, int] = {}
    failures: Dict[str, DestinationWriteError] = {}

    with ThreadPoolExecutor(max_workers=max(len(destinations), 1), thread_name_prefix="sink") as executor:
        futures = {
            executor.submit(write_summary_to_destination, summary_df, destination, batch_size): destination
            for destination in destinations
        }
        for future, destination in futures.items():
            try:
                written[destination.name] = future.result()
            except DestinationWriteError as e:
                failures[destination.name] = e

    if failures:
        names = sorted(failures)
        first = failures[names[0]]
        raise DestinationWriteError(
            f"Summary write failed for {names}",
            destination=",".join(names),
            details={"failed": names, "written": written},
            original_error=first.original_error,
        )

    log_banner(logger, f"SINK COMPLETE: {written}")
    return written


def read_summary(engine) -> pd.DataFrame:
    """Read the summary table of a destination."""
    table = PayrollSummary.__table__
    return pd.read_sql(select(table), engine)
