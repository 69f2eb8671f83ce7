"""Tests for settings and exception formatting."""

from payroll_etl.common.config import DEFAULT_MIN_FISCAL_YEAR, Settings
from payroll_etl.common.exceptions import PipelineHaltError, TableLoadError


def test_defaults_without_environment(monkeypatch):
    for name in ("MIN_FISCAL_YEAR", "MINIO_ENDPOINT", "DATA_DIR", "PAYROLL_2021_FILE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.min_fiscal_year == DEFAULT_MIN_FISCAL_YEAR
    assert settings.data_dir == "datasets"
    assert settings.source_files["payroll_2021"] == "nycpayroll_2021.csv"
    assert not settings.minio.enabled


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MIN_FISCAL_YEAR", "2020")
    monkeypatch.setenv("ON_MALFORMED", " SKIP ")
    monkeypatch.setenv("LOAD_WORKERS", "2")
    monkeypatch.setenv("SINK_SECONDARY_NAME", "reporting")
    monkeypatch.setenv("PAYROLL_2020_FILE", "payroll-fy2020.csv")
    monkeypatch.setenv("MINIO_ENDPOINT", "minio:9000")
    monkeypatch.setenv("MINIO_SECURE", "true")

    settings = Settings.from_env()

    assert settings.min_fiscal_year == "2020"
    assert settings.on_malformed == "skip"
    assert settings.load_workers == 2
    assert settings.sink_secondary_name == "reporting"
    assert settings.source_files["payroll_2020"] == "payroll-fy2020.csv"
    assert settings.minio.enabled
    assert settings.minio.secure


def test_error_details_are_rendered():
    error = TableLoadError("Database error while loading x.csv", table_name="payroll_2021")

    assert str(error) == "Database error while loading x.csv | Details: {'table_name': 'payroll_2021'}"
    assert error.table_name == "payroll_2021"


def test_halt_error_records_step():
    cause = ValueError("boom")
    error = PipelineHaltError("halted", step="sink", original_error=cause)

    assert error.step == "sink"
    assert error.original_error is cause
