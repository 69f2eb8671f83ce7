# payroll_etl/common/__init__.py
"""
Common utilities shared across pipeline steps.
Includes configuration, quality checks, logging, and custom exceptions.
"""

from payroll_etl.common.quality_checks import (
    QCResult,
    QCReport,
    validate_post_load,
    check_row_count,
    check_nulls,
    check_unique_key,
    check_non_negative,
    check_referential_integrity,
    check_sink_consistency,
)
from payroll_etl.common.exceptions import (
    ETLError,
    SourceUnavailableError,
    MalformedRecordError,
    ParameterError,
    TableLoadError,
    DestinationWriteError,
    PipelineHaltError,
)
from payroll_etl.common.logging import configure_logging, create_run_log_file
from payroll_etl.common.config import Settings, get_settings

__all__ = [
    # Quality checks
    "QCResult",
    "QCReport",
    "validate_post_load",
    "check_row_count",
    "check_nulls",
    "check_unique_key",
    "check_non_negative",
    "check_referential_integrity",
    "check_sink_consistency",
    # Exceptions
    "ETLError",
    "SourceUnavailableError",
    "MalformedRecordError",
    "ParameterError",
    "TableLoadError",
    "DestinationWriteError",
    "PipelineHaltError",
    # Logging
    "configure_logging",
    "create_run_log_file",
    # Configuration
    "Settings",
    "get_settings",
]
