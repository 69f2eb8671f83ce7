# payroll_etl/common/config.py
"""
Pipeline configuration loaded from environment variables.
A ``.env`` file in the working directory is honoured when present.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import load_dotenv


DEFAULT_MIN_FISCAL_YEAR = 2021

# entity name -> (environment override, default file name)
DEFAULT_SOURCE_FILES = {
    "employee_master": ("EMPLOYEE_MASTER_FILE", "EmpMaster.csv"),
    "agency_master": ("AGENCY_MASTER_FILE", "AgencyMaster.csv"),
    "title_master": ("TITLE_MASTER_FILE", "TitleMaster.csv"),
    "payroll_2020": ("PAYROLL_2020_FILE", "nycpayroll_2020.csv"),
    "payroll_2021": ("PAYROLL_2021_FILE", "nycpayroll_2021.csv"),
}


def _load_env(dotenv_path: Optional[Path] = None) -> None:
    """Load the .env file once for the process."""
    if getattr(_load_env, "_loaded", False):
        return
    load_dotenv(dotenv_path)
    setattr(_load_env, "_loaded", True)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class MinioSettings:
    """Connection details for the data lake bucket holding the source files."""

    endpoint: Optional[str] = None
    access_key: str = "minioadmin"
    secret_key: str = "minioadmin"
    bucket_name: str = "rawdata"
    secure: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    @classmethod
    def from_env(cls) -> "MinioSettings":
        defaults = cls()
        return cls(
            endpoint=os.getenv("MINIO_ENDPOINT") or None,
            access_key=os.getenv("MINIO_ACCESS_KEY", defaults.access_key),
            secret_key=os.getenv("MINIO_SECRET_KEY", defaults.secret_key),
            bucket_name=os.getenv("MINIO_BUCKET", defaults.bucket_name),
            secure=_env_flag("MINIO_SECURE"),
        )


@dataclass(frozen=True)
class Settings:
    """Container for pipeline configuration."""

    staging_database_url: str = "sqlite:///payroll_staging.db"
    sink_primary_url: str = "sqlite:///payroll_warehouse.db"
    sink_secondary_url: str = "sqlite:///payroll_sqldb.db"
    sink_primary_name: str = "warehouse"
    sink_secondary_name: str = "sqldb"
    data_dir: str = "datasets"
    # Kept as given; validated by the aggregator before any data is read.
    min_fiscal_year: Union[int, str, None] = DEFAULT_MIN_FISCAL_YEAR
    on_malformed: str = "abort"
    load_workers: int = 5
    batch_size: int = 1000
    sqlalchemy_echo: bool = False
    minio: MinioSettings = field(default_factory=MinioSettings)
    source_files: Dict[str, str] = field(
        default_factory=lambda: {name: default for name, (_, default) in DEFAULT_SOURCE_FILES.items()}
    )

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "Settings":
        """Build ``Settings`` using environment variables (optionally from ``.env``)."""
        _load_env(dotenv_path)
        defaults = cls()

        source_files = {
            name: os.getenv(env_name, default)
            for name, (env_name, default) in DEFAULT_SOURCE_FILES.items()
        }

        return cls(
            staging_database_url=os.getenv("STAGING_DATABASE_URL", defaults.staging_database_url),
            sink_primary_url=os.getenv("SINK_PRIMARY_URL", defaults.sink_primary_url),
            sink_secondary_url=os.getenv("SINK_SECONDARY_URL", defaults.sink_secondary_url),
            sink_primary_name=os.getenv("SINK_PRIMARY_NAME", defaults.sink_primary_name),
            sink_secondary_name=os.getenv("SINK_SECONDARY_NAME", defaults.sink_secondary_name),
            data_dir=os.getenv("DATA_DIR", defaults.data_dir),
            min_fiscal_year=os.getenv("MIN_FISCAL_YEAR", defaults.min_fiscal_year),
            on_malformed=os.getenv("ON_MALFORMED", defaults.on_malformed).strip().lower(),
            load_workers=int(os.getenv("LOAD_WORKERS", defaults.load_workers)),
            batch_size=int(os.getenv("BATCH_SIZE", defaults.batch_size)),
            sqlalchemy_echo=_env_flag("SQLALCHEMY_ECHO"),
            minio=MinioSettings.from_env(),
            source_files=source_files,
        )


@lru_cache()
def get_settings(dotenv_path: Optional[Path] = None) -> Settings:
    """Return a cached settings instance."""
    return Settings.from_env(dotenv_path=dotenv_path)
