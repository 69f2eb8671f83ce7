# payroll_etl/__init__.py
"""
Payroll ETL Pipeline.

This package moves NYC payroll source files into queryable tables and
publishes a yearly per-agency pay summary:
- Bronze: Source ingestion (data lake download, CSV reader, staging loader)
- Gold: Aggregation and dual-destination summary sink

Usage:
    from payroll_etl import run_payroll_pipeline
    results = run_payroll_pipeline(min_fiscal_year=2021)

    # Or run individual steps:
    from payroll_etl.bronze import run_staging_load
    from payroll_etl.gold import run_aggregation, write_summary
"""

__version__ = "1.0.0"

# Main entry point
from payroll_etl.orchestrator import run_payroll_pipeline

# Step-specific exports
from payroll_etl.bronze import run_staging_load, run_source_load, read_source, extract_from_data_lake
from payroll_etl.gold import aggregate_payroll, run_aggregation, write_summary
from payroll_etl.common import validate_post_load, QCReport, QCResult

__all__ = [
    # Version
    "__version__",
    # Main orchestrator
    "run_payroll_pipeline",
    # Bronze layer
    "run_staging_load",
    "run_source_load",
    "read_source",
    "extract_from_data_lake",
    # Gold layer
    "aggregate_payroll",
    "run_aggregation",
    "write_summary",
    # Common utilities
    "validate_post_load",
    "QCReport",
    "QCResult",
]
