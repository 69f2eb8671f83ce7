"""
Gold Layer - Yearly pay summary per agency.
Aggregates the payroll extracts and publishes the result to every sink.
"""

from payroll_etl.gold.aggregator import (
    resolve_min_fiscal_year,
    union_payroll,
    filter_by_fiscal_year,
    derive_total_paid,
    aggregate_by_agency_year,
    aggregate_payroll,
    run_aggregation,
)
from payroll_etl.gold.sink import (
    SinkDestination,
    get_destinations,
    write_summary,
    write_summary_to_destination,
    read_summary,
)

__all__ = [
    "resolve_min_fiscal_year",
    "union_payroll",
    "filter_by_fiscal_year",
    "derive_total_paid",
    "aggregate_by_agency_year",
    "aggregate_payroll",
    "run_aggregation",
    "SinkDestination",
    "get_destinations",
    "write_summary",
    "write_summary_to_destination",
    "read_summary",
]
