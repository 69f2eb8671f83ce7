"""
Aggregator - yearly total pay per agency from the two payroll extracts.

The aggregation is a chain of pure DataFrame stages, each usable on its own:

    union_payroll -> filter_by_fiscal_year -> derive_total_paid
        -> aggregate_by_agency_year

Inputs may hold typed values (read back from the staging tables) or raw
strings; every stage parses defensively and never fails on a bad value.
"""

import logging
import numbers
from typing import Any, Iterable, Optional, Sequence

import pandas as pd
from sqlalchemy import select

from db.db_utils import get_engine
from db.models import Payroll2020, Payroll2021, PAYROLL_COLUMNS, SUMMARY_COLUMNS
from payroll_etl.bronze.utils import (
    INTEGER_TEXT,
    clean_integer_column,
    clean_numeric_column,
    clean_string_column,
)
from payroll_etl.common.config import DEFAULT_MIN_FISCAL_YEAR
from payroll_etl.common.exceptions import ParameterError
from payroll_etl.common.logging import log_banner

logger = logging.getLogger(__name__)

PAY_COMPONENTS = ("RegularGrossPaid", "TotalOTPaid", "TotalOtherPay")
GROUP_COLUMNS = ["AgencyName", "FiscalYear"]
UNKNOWN_AGENCY = "Unknown"


# PARAMETERS

def resolve_min_fiscal_year(value: Any) -> int:
    """
    Validate the fiscal year threshold.

    Integers and strings holding an integer in ASCII digits (as read from
    the environment or the command line) are accepted.

    Raises:
        ParameterError: If the value is missing or not an integer
    """
    if value is None:
        raise ParameterError("min_fiscal_year is required", parameter="min_fiscal_year", value=value)

    if isinstance(value, bool):
        raise ParameterError("min_fiscal_year must be an integer", parameter="min_fiscal_year", value=value)

    if isinstance(value, numbers.Integral):
        return int(value)

    if isinstance(value, str):
        text = value.strip()
        if INTEGER_TEXT.fullmatch(text):
            return int(text)

    raise ParameterError("min_fiscal_year must be an integer", parameter="min_fiscal_year", value=value)


# STAGES

def union_payroll(frames: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """Append payroll frames into one. Rows are neither deduplicated nor reordered."""
    frames = [df for df in frames if df is not None]
    if not frames:
        return pd.DataFrame(columns=list(PAYROLL_COLUMNS))
    return pd.concat(frames, ignore_index=True)


def filter_by_fiscal_year(df: pd.DataFrame, min_fiscal_year: int) -> pd.DataFrame:
    """
    Keep rows whose FiscalYear is an integer >= ``min_fiscal_year``.
    Rows whose FiscalYear does not parse as an integer are dropped.
    """
    if df.empty:
        result = df.copy()
        result["FiscalYear"] = pd.Series(dtype="int64")
        return result

    years = clean_integer_column(df["FiscalYear"])
    keep = (years.notna() & (years >= min_fiscal_year)).fillna(False).astype(bool)

    dropped = int(years.isna().sum())
    if dropped:
        logger.warning(f"Excluded {dropped} records with a missing or non-integer FiscalYear")

    result = df[keep.to_numpy()].copy()
    result["FiscalYear"] = years[keep].astype("int64").to_numpy()
    return result.reset_index(drop=True)


def derive_total_paid(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add TotalPaid = RegularGrossPaid + TotalOTPaid + TotalOtherPay.
    Missing or non-numeric components count as 0.0.
    """
    result = df.copy()
    total = pd.Series(0.0, index=result.index)
    for column in PAY_COMPONENTS:
        if column in result.columns:
            total = total + clean_numeric_column(result[column], default_value=0.0)
    result["TotalPaid"] = total.astype(float)
    return result


def aggregate_by_agency_year(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sum TotalPaid per (AgencyName, FiscalYear). One row per group; group
    order is not meaningful. Rows without an agency name are grouped under
    "Unknown".
    """
    if df.empty:
        return pd.DataFrame({
            "FiscalYear": pd.Series(dtype="int64"),
            "AgencyName": pd.Series(dtype=object),
            "TotalPaid": pd.Series(dtype=float),
        })

    grouped = df.assign(
        AgencyName=clean_string_column(df["AgencyName"], default_value=UNKNOWN_AGENCY)
    )
    summary = grouped.groupby(GROUP_COLUMNS, as_index=False, sort=False)["TotalPaid"].sum()
    summary["FiscalYear"] = summary["FiscalYear"].astype("int64")
    summary["TotalPaid"] = summary["TotalPaid"].astype(float)
    return summary[list(SUMMARY_COLUMNS)]


def aggregate_payroll(
    frames: Sequence[pd.DataFrame],
    min_fiscal_year: Any = DEFAULT_MIN_FISCAL_YEAR,
) -> pd.DataFrame:
    """
    Run union -> filter -> derive -> aggregate over payroll frames.

    Raises:
        ParameterError: If ``min_fiscal_year`` is invalid (before any frame is touched)
    """
    min_year = resolve_min_fiscal_year(min_fiscal_year)

    combined = union_payroll(frames)
    logger.info(f"Union: {len(combined)} payroll records")

    filtered = filter_by_fiscal_year(combined, min_year)
    logger.info(f"Filter FiscalYear >= {min_year}: {len(filtered)} records kept")

    derived = derive_total_paid(filtered)
    summary = aggregate_by_agency_year(derived)
    logger.info(f"Aggregate: {len(summary)} agency/year groups")
    return summary


# DATA LOADING FROM STAGING

def load_payroll_table(engine, table_class) -> pd.DataFrame:
    """Read a staging payroll table."""
    table = table_class.__table__
    df = pd.read_sql(select(table), engine)
    logger.info(f"Loaded {len(df)} records from {table.name}")
    return df


def run_aggregation(
    engine=None,
    min_fiscal_year: Any = DEFAULT_MIN_FISCAL_YEAR,
    tables: Optional[Sequence[Any]] = None,
) -> pd.DataFrame:
    """
    Aggregate the staging payroll tables into the yearly agency summary.

    Args:
        engine: Staging database engine (created if not provided)
        min_fiscal_year: Minimum fiscal year (inclusive)
        tables: Payroll models to union (default: the 2020 and 2021 extracts)

    Returns:
        Summary DataFrame with FiscalYear, AgencyName, TotalPaid

    Raises:
        ParameterError: If ``min_fiscal_year`` is invalid (nothing is read)
    """
    min_year = resolve_min_fiscal_year(min_fiscal_year)

    log_banner(logger, f"AGGREGATION: total pay per agency, FiscalYear >= {min_year}")

    engine = engine or get_engine()
    frames = [load_payroll_table(engine, table_class) for table_class in (tables or (Payroll2020, Payroll2021))]
    summary = aggregate_payroll(frames, min_year)

    log_banner(logger, f"AGGREGATION COMPLETE: {len(summary)} summary records")
    return summary
