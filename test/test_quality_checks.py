"""Tests for the quality checks and the post-load report."""

import warnings

import pandas as pd
from sqlalchemy.exc import SAWarning

from payroll_etl.bronze.loader import run_staging_load
from payroll_etl.common.quality_checks import (
    QCReport,
    QCResult,
    check_non_negative,
    check_nulls,
    check_referential_integrity,
    check_row_count,
    check_sink_consistency,
    check_unique_key,
    validate_post_load,
)
from payroll_etl.gold.aggregator import run_aggregation
from payroll_etl.gold.sink import write_summary

COLUMNS = ["FiscalYear", "AgencyName", "TotalPaid"]


def _summary(rows):
    return pd.DataFrame(rows, columns=COLUMNS)


def test_row_count_must_match_exactly():
    df = _summary([(2021, "NYPD", 1.0)])

    assert check_row_count(df, "t", expected=1).passed
    assert not check_row_count(df, "t", expected=2).passed


def test_nulls_and_repeated_keys():
    df = _summary([(2021, "NYPD", 1.0), (2021, "NYPD", 2.0), (2021, None, 3.0)])

    nulls = check_nulls(df, "t", COLUMNS)
    unique = check_unique_key(df, "t", ["AgencyName", "FiscalYear"])

    assert not nulls.passed
    assert nulls.details["null_counts"] == {"AgencyName": 1}
    assert not unique.passed
    assert unique.details["duplicate_count"] == 2
    assert unique.details["sample_keys"] == [("NYPD", 2021)]


def test_negative_total_is_a_warning():
    result = check_non_negative(_summary([(2021, "NYPD", -5.0)]), "t", "TotalPaid")

    assert not result.passed
    assert result.severity == "WARNING"
    assert result.details["min"] == -5.0


def test_referential_integrity_reports_orphans():
    result = check_referential_integrity(["A", "B", None], ["A"], "payroll_2021", "agency_master", "AgencyID")

    assert not result.passed
    assert result.details["sample_orphans"] == ["B"]


def test_sink_consistency_ignores_row_order():
    a = _summary([(2021, "NYPD", 1.0), (2021, "DOE", 2.0)])
    b = a.iloc[::-1].reset_index(drop=True)

    assert check_sink_consistency({"a": a, "b": b}, COLUMNS).passed


def test_sink_consistency_detects_differences():
    a = _summary([(2021, "NYPD", 1.0)])
    b = _summary([(2021, "NYPD", 2.0)])

    result = check_sink_consistency({"a": a, "b": b}, COLUMNS)

    assert not result.passed
    assert "['b']" in result.message


def test_report_passes_with_warnings_only():
    report = QCReport()
    report.add(QCResult("ok", "t", True, "fine"))
    report.add(QCResult("range", "t", False, "odd", severity="WARNING"))

    assert report.passed
    assert report.warning_count == 1
    assert report.failed_count == 0

    report.add(QCResult("count", "t", False, "bad"))
    assert not report.passed
    assert "[FAIL] t.count: bad" in report.summary()
    assert "[WARNING] t.range: odd" in report.summary()


def test_validate_post_load_after_a_real_run(settings, staging_engine, destinations):
    run_staging_load(engine=staging_engine, settings=settings)
    summary = run_aggregation(staging_engine, 2021)
    write_summary(summary, destinations)

    report = validate_post_load(staging_engine, destinations, summary)

    assert report.passed
    assert report.warning_count == 0


def test_validate_post_load_detects_missing_rows(settings, staging_engine, destinations):
    run_staging_load(engine=staging_engine, settings=settings)
    summary = run_aggregation(staging_engine, 2021)
    write_summary(summary.iloc[:1], destinations)

    report = validate_post_load(staging_engine, destinations, summary)

    assert not report.passed
    assert {r.check_name for r in report.errors} == {"row_count"}


def test_validate_post_load_warns_on_orphan_agency(settings, staging_engine, destinations, data_dir):
    (data_dir / "AgencyMaster.csv").write_text("AgencyID,AgencyName\n056,NYPD\n", encoding="utf-8")
    run_staging_load(engine=staging_engine, settings=settings)
    summary = run_aggregation(staging_engine, 2021)
    write_summary(summary, destinations)

    report = validate_post_load(staging_engine, destinations, summary)

    assert report.passed
    assert [r.table_name for r in report.warnings] == ["payroll_2020", "payroll_2021"]


def test_validate_post_load_emits_no_sqlalchemy_warnings(settings, staging_engine, destinations):
    run_staging_load(engine=staging_engine, settings=settings)
    summary = run_aggregation(staging_engine, 2021)
    write_summary(summary, destinations)

    with warnings.catch_warnings():
        warnings.simplefilter("error", SAWarning)
        report = validate_post_load(staging_engine, destinations, summary)

    assert report.passed
