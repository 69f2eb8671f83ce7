# payroll_etl/bronze/loader.py
"""
Loader - write source files into their staging tables.

Every load is a full replace: the table is truncated, then every record
read from the source is inserted in committed batches. A failure part way
through leaves the rows of the batches already committed.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from db.db_utils import create_tables, get_engine, get_session, insert_dataframe, truncate_table
from db.models import AgencyMaster, EmployeeMaster, Payroll2020, Payroll2021, TitleMaster
from payroll_etl.bronze.reader import ReadStats, read_source
from payroll_etl.common.config import Settings, get_settings
from payroll_etl.common.exceptions import TableLoadError
from payroll_etl.common.logging import log_banner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceEntity:
    """A source file and the staging table it is loaded into."""
    name: str
    table_class: Any

    @property
    def table_name(self) -> str:
        return self.table_class.__table__.name


SOURCE_ENTITIES: Dict[str, SourceEntity] = {
    "employee_master": SourceEntity("employee_master", EmployeeMaster),
    "agency_master": SourceEntity("agency_master", AgencyMaster),
    "title_master": SourceEntity("title_master", TitleMaster),
    "payroll_2020": SourceEntity("payroll_2020", Payroll2020),
    "payroll_2021": SourceEntity("payroll_2021", Payroll2021),
}


def load_source_to_table(
    file_path: str,
    table_class,
    engine,
    batch_size: int = 1000,
    on_malformed: str = "abort",
) -> Dict[str, Any]:
    """
    Replace the contents of a staging table with the records of a source file.

    Args:
        file_path: Path to the CSV file
        table_class: Model of the staging table
        engine: Database engine holding the staging tables
        batch_size: Number of records per insert batch
        on_malformed: "abort" or "skip" for rows that violate the schema

    Returns:
        Load statistics for the table

    Raises:
        SourceUnavailableError: If the source cannot be read (table untouched)
        MalformedRecordError: On a malformed row under the "abort" policy
        TableLoadError: If the database write fails
    """
    table = table_class.__table__
    file_name = os.path.basename(file_path)
    logger.info(f"Loading {file_name} into {table.name}")

    stats = ReadStats()
    # Raises SourceUnavailableError before the table is touched
    chunks = read_source(file_path, table_class, chunk_size=batch_size, on_malformed=on_malformed, stats=stats)

    session = get_session(engine)
    try:
        create_tables(engine, table_class)
        truncate_table(session, table)
        session.commit()

        loaded = 0
        for chunk in chunks:
            loaded += insert_dataframe(chunk, table, session, batch_size=batch_size)
            logger.info(f"  {table.name}: {loaded} records loaded")

    except SQLAlchemyError as e:
        logger.error(f"Failed to load {file_name} into {table.name}: {e}")
        session.rollback()
        raise TableLoadError(
            f"Database error while loading {file_name}",
            table_name=table.name,
            original_error=e,
        ) from e
    except Exception as e:
        logger.error(f"Failed to load {file_name} into {table.name}: {e}")
        session.rollback()
        raise
    finally:
        session.close()

    if stats.rows_skipped:
        logger.warning(f"  {table.name}: skipped {stats.rows_skipped} malformed records")
    logger.info(f"  Total: {loaded} records loaded from {file_name}")

    return {
        "table": table.name,
        "source_file": file_name,
        "records": loaded,
        "rows_read": stats.rows_read,
        "skipped": stats.rows_skipped,
    }


def run_source_load(
    entity_name: str,
    data_dir: Optional[str] = None,
    engine=None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """
    Load one source entity (e.g. "payroll_2021") from the data directory.

    Args:
        entity_name: Key of SOURCE_ENTITIES
        data_dir: Directory containing source CSV files (default from settings)
        engine: Staging database engine (created if not provided)
        settings: Pipeline settings (loaded from the environment if not provided)

    Returns:
        Load statistics for the entity
    """
    if entity_name not in SOURCE_ENTITIES:
        raise KeyError(f"Unknown source entity: {entity_name}")

    settings = settings or get_settings()
    entity = SOURCE_ENTITIES[entity_name]
    file_path = os.path.join(data_dir or settings.data_dir, settings.source_files[entity_name])

    return load_source_to_table(
        file_path,
        entity.table_class,
        engine or get_engine(settings.staging_database_url),
        batch_size=settings.batch_size,
        on_malformed=settings.on_malformed,
    )


def run_staging_load(
    data_dir: Optional[str] = None,
    engine=None,
    settings: Optional[Settings] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Load all five source entities concurrently and wait for every load.

    A failed load does not stop its siblings; failures are collected and
    returned next to the successful results.

    Returns:
        dict: {"loads": {entity: stats}, "failures": {entity: exception}}
    """
    settings = settings or get_settings()
    engine = engine or get_engine(settings.staging_database_url)
    workers = max_workers or settings.load_workers

    log_banner(logger, "STAGING LOAD: Loading source files")

    loads: Dict[str, Any] = {}
    failures: Dict[str, Exception] = {}

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="load") as executor:
        futures = {
            executor.submit(run_source_load, name, data_dir, engine, settings): name
            for name in SOURCE_ENTITIES
        }
        # Barrier: every load finishes before anything downstream starts
        for future, name in futures.items():
            try:
                loads[name] = future.result()
            except Exception as e:
                logger.error(f"Load of {name} failed: {e}")
                failures[name] = e

    total = sum(result["records"] for result in loads.values())
    log_banner(
        logger,
        f"STAGING LOAD COMPLETE: {total} records in {len(loads)} tables, {len(failures)} failed",
    )
    return {"loads": loads, "failures": failures}
