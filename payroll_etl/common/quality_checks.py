"""
Quality checks run after the summary has been published.

ERROR results fail the run; WARNING results are logged and reported only.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Sequence
from datetime import datetime

import pandas as pd
from sqlalchemy import select

logger = logging.getLogger(__name__)

ERROR = "ERROR"
WARNING = "WARNING"


@dataclass
class QCResult:
    """Outcome of one check against one table."""
    check_name: str
    table_name: str
    passed: bool
    message: str
    details: Optional[Dict[str, Any]] = None
    severity: str = ERROR

    @property
    def status(self) -> str:
        if self.passed:
            return "PASS"
        return "FAIL" if self.severity == ERROR else self.severity


@dataclass
class QCReport:
    """All check results of one validation pass."""
    timestamp: datetime = field(default_factory=datetime.now)
    results: List[QCResult] = field(default_factory=list)

    @property
    def errors(self) -> List[QCResult]:
        return [r for r in self.results if not r.passed and r.severity == ERROR]

    @property
    def warnings(self) -> List[QCResult]:
        return [r for r in self.results if not r.passed and r.severity == WARNING]

    @property
    def passed(self) -> bool:
        return not self.errors

    @property
    def failed_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def add(self, result: QCResult) -> None:
        self.results.append(result)
        if result.passed:
            level = logging.INFO
        else:
            level = logging.ERROR if result.severity == ERROR else logging.WARNING
        logger.log(level, f"[QC {result.status}] {result.table_name}: {result.check_name} - {result.message}")

    def summary(self) -> str:
        passed = len(self.results) - self.failed_count - self.warning_count
        lines = [
            "=" * 60,
            f"QC REPORT - {self.timestamp:%Y-%m-%d %H:%M:%S}",
            "=" * 60,
            f"Checks: {len(self.results)}  Passed: {passed}  "
            f"Failed: {self.failed_count}  Warnings: {self.warning_count}",
            "-" * 60,
        ]
        lines.extend(f"[{r.status}] {r.table_name}.{r.check_name}: {r.message}" for r in self.results)
        lines.append("=" * 60)
        return "\n".join(lines)


# CHECKS

def check_row_count(df: pd.DataFrame, table_name: str, expected: int) -> QCResult:
    """The table holds exactly ``expected`` rows."""
    actual = len(df)
    return QCResult(
        check_name="row_count",
        table_name=table_name,
        passed=actual == expected,
        message=f"{actual} rows, {expected} expected",
        details={"row_count": actual, "expected": expected},
    )


def check_nulls(df: pd.DataFrame, table_name: str, columns: Sequence[str]) -> QCResult:
    """None of ``columns`` holds a null."""
    present = [c for c in columns if c in df.columns]
    counts = df[present].isna().sum()
    offending = {col: int(n) for col, n in counts.items() if n}
    return QCResult(
        check_name="null_check",
        table_name=table_name,
        passed=not offending,
        message=f"Nulls found: {offending}" if offending else f"No nulls in {present}",
        details={"null_counts": offending},
    )


def check_unique_key(df: pd.DataFrame, table_name: str, key_columns: Sequence[str]) -> QCResult:
    """Every combination of ``key_columns`` occurs once."""
    repeated = df[df.duplicated(subset=list(key_columns), keep=False)]
    sample = repeated[list(key_columns)].drop_duplicates().head(10)
    return QCResult(
        check_name="unique_key",
        table_name=table_name,
        passed=repeated.empty,
        message=f"{len(repeated)} rows share a key on {list(key_columns)}",
        details={
            "duplicate_count": len(repeated),
            "sample_keys": [tuple(row) for row in sample.itertuples(index=False)],
        },
    )


def check_non_negative(
    df: pd.DataFrame,
    table_name: str,
    column: str,
    severity: str = WARNING,
) -> QCResult:
    """Values of ``column`` are >= 0."""
    values = pd.to_numeric(df[column], errors="coerce")
    negative = int((values < 0).sum())
    lowest = None if values.isna().all() else float(values.min())
    return QCResult(
        check_name=f"non_negative_{column}",
        table_name=table_name,
        passed=negative == 0,
        message=f"{negative} negative values (min {lowest})",
        details={"negative_count": negative, "min": lowest},
        severity=severity,
    )


def check_referential_integrity(
    child_keys: Sequence[Any],
    parent_keys: Sequence[Any],
    child_table: str,
    parent_table: str,
    key: str,
    severity: str = WARNING,
) -> QCResult:
    """Every non-null ``key`` of the child table exists in the parent table."""
    orphans = {k for k in child_keys if not pd.isna(k)} - set(parent_keys)
    return QCResult(
        check_name=f"ref_integrity_{key}",
        table_name=child_table,
        passed=not orphans,
        message=f"{len(orphans)} {key} values missing from {parent_table}",
        details={"orphan_count": len(orphans), "sample_orphans": sorted(map(str, orphans))[:10]},
        severity=severity,
    )


def check_sink_consistency(
    frames: Dict[str, pd.DataFrame],
    columns: Sequence[str],
    table_name: str = "payroll_summary",
) -> QCResult:
    """All destinations hold the same multiset of rows; order is ignored."""
    def fingerprint(df: pd.DataFrame):
        return sorted(map(tuple, df[list(columns)].astype(str).itertuples(index=False)))

    names = list(frames)
    reference = fingerprint(frames[names[0]])
    mismatched = [name for name in names[1:] if fingerprint(frames[name]) != reference]
    return QCResult(
        check_name="sink_consistency",
        table_name=table_name,
        passed=not mismatched,
        message=(
            f"{mismatched} differ from '{names[0]}'" if mismatched
            else f"{names} hold identical rows"
        ),
        details={name: len(df) for name, df in frames.items()},
    )


# POST-LOAD VALIDATION

def _distinct_values(engine, table, column_name: str) -> List[Any]:
    with engine.connect() as conn:
        return list(conn.execute(select(table.c[column_name]).distinct()).scalars())


def _check_master_references(report: QCReport, staging_engine) -> None:
    from db.models import AgencyMaster, EmployeeMaster, TitleMaster, Payroll2020, Payroll2021

    references = [("AgencyID", AgencyMaster), ("TitleCode", TitleMaster), ("EmployeeID", EmployeeMaster)]
    for payroll_model in (Payroll2020, Payroll2021):
        payroll_table = payroll_model.__table__
        for key, master_model in references:
            master_table = master_model.__table__
            try:
                result = check_referential_integrity(
                    _distinct_values(staging_engine, payroll_table, key),
                    _distinct_values(staging_engine, master_table, key),
                    payroll_table.name, master_table.name, key,
                )
            except Exception as e:
                result = QCResult(
                    check_name=f"ref_integrity_{key}",
                    table_name=payroll_table.name,
                    passed=False,
                    message=f"Error querying staging tables: {e}",
                    severity=WARNING,
                )
            report.add(result)


def validate_post_load(
    staging_engine,
    destinations: Sequence[Any],
    summary_df: pd.DataFrame,
) -> QCReport:
    """
    Verify every destination holds the summary that was written.

    Per destination: row count equals the aggregation, no nulls, one row per
    (AgencyName, FiscalYear), non-negative totals (warning). Across
    destinations: identical rows. On the staging side, payroll keys that are
    missing from the master tables are reported as warnings.

    Args:
        staging_engine: Engine holding the staging tables
        destinations: SinkDestination objects that were written
        summary_df: The aggregation that was written to every destination

    Returns:
        QCReport with validation results
    """
    from db.models import SUMMARY_COLUMNS, SUMMARY_KEY_COLUMNS
    from payroll_etl.gold.sink import read_summary

    report = QCReport()
    logger.info("=" * 60)
    logger.info("POST-LOAD VALIDATION")
    logger.info("=" * 60)

    frames = {}
    for destination in destinations:
        label = f"{destination.name}.payroll_summary"
        try:
            df = read_summary(destination.engine)
        except Exception as e:
            report.add(QCResult("read_summary", label, False, f"Error querying table: {e}"))
            continue

        frames[destination.name] = df
        report.add(check_row_count(df, label, expected=len(summary_df)))
        report.add(check_nulls(df, label, SUMMARY_COLUMNS))
        report.add(check_unique_key(df, label, SUMMARY_KEY_COLUMNS))
        report.add(check_non_negative(df, label, "TotalPaid"))

    if len(frames) > 1:
        report.add(check_sink_consistency(frames, SUMMARY_COLUMNS))

    _check_master_references(report, staging_engine)

    logger.info(report.summary())
    return report
