"""Tests for the command line interface."""

import pandas as pd
import pytest
from click.testing import CliRunner

from payroll_etl import cli as cli_module
from payroll_etl.cli import cli
from payroll_etl.common.exceptions import PipelineHaltError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli_module, "_setup_logging", lambda verbose, log_dir=None: None)


def test_run_reports_results(runner, monkeypatch):
    captured = {}

    def fake_pipeline(**kwargs):
        captured.update(kwargs)
        return {
            "loads": {"payroll_2021": {"records": 3, "skipped": 1}},
            "aggregation": {"records": 2},
            "sinks": {"warehouse": 2, "sqldb": 2},
        }

    monkeypatch.setattr(cli_module, "run_payroll_pipeline", fake_pipeline)

    result = runner.invoke(cli, ["run", "--min-fiscal-year", "2020", "--no-extract", "-d", "/data"])

    assert result.exit_code == 0
    assert "Pipeline completed successfully" in result.output
    assert "payroll_2021: 3 records loaded, 1 skipped" in result.output
    assert "sqldb: 2 rows written" in result.output
    assert captured == {"data_dir": "/data", "min_fiscal_year": "2020", "extract": False, "validate": True}


def test_run_failure_exits_non_zero(runner, monkeypatch):
    def failing_pipeline(**kwargs):
        raise PipelineHaltError("Pipeline halted at step 'load'", step="load")

    monkeypatch.setattr(cli_module, "run_payroll_pipeline", failing_pipeline)

    result = runner.invoke(cli, ["run"])

    assert result.exit_code == 1
    assert "Pipeline failed" in result.output


def test_load_single_entity(runner, monkeypatch):
    monkeypatch.setattr(
        cli_module,
        "run_source_load",
        lambda entity, data_dir=None: {"table": entity, "records": 5, "skipped": 0},
    )

    result = runner.invoke(cli, ["load", "agency_master"])

    assert result.exit_code == 0
    assert "agency_master: 5 records loaded, 0 skipped" in result.output


def test_load_rejects_unknown_entity(runner):
    result = runner.invoke(cli, ["load", "department_master"])

    assert result.exit_code == 2


def test_preview_prints_sorted_summary(runner, monkeypatch):
    summary = pd.DataFrame({
        "FiscalYear": [2022, 2021],
        "AgencyName": ["NYPD", "DOE"],
        "TotalPaid": [10.0, 20.0],
    })
    monkeypatch.setattr(cli_module, "run_aggregation", lambda min_fiscal_year: summary)

    result = runner.invoke(cli, ["preview", "-y", "2021"])

    assert result.exit_code == 0
    assert result.output.index("DOE") < result.output.index("NYPD")


def test_preview_with_no_matches(runner, monkeypatch):
    monkeypatch.setattr(
        cli_module, "run_aggregation",
        lambda min_fiscal_year: pd.DataFrame(columns=["FiscalYear", "AgencyName", "TotalPaid"]),
    )

    result = runner.invoke(cli, ["preview", "-y", "2030"])

    assert "No payroll records match" in result.output
