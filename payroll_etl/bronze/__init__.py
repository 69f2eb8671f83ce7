"""
Bronze Layer - Source ingestion into staging tables.
Every staging table is fully replaced on each load.
"""

from payroll_etl.bronze.reader import read_source, ReadStats
from payroll_etl.bronze.loader import (
    SOURCE_ENTITIES,
    load_source_to_table,
    run_source_load,
    run_staging_load,
)
from payroll_etl.bronze.extractor import extract_from_data_lake

__all__ = [
    "read_source",
    "ReadStats",
    "SOURCE_ENTITIES",
    "load_source_to_table",
    "run_source_load",
    "run_staging_load",
    "extract_from_data_lake",
]
