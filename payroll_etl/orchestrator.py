# payroll_etl/orchestrator.py
"""
Payroll Pipeline Orchestrator.
Runs extract -> staging load -> aggregation -> dual sink -> validation.
"""

import logging
import threading
from typing import Any, Dict, Optional, Sequence

from db.db_utils import get_engine
from payroll_etl.bronze.extractor import extract_from_data_lake
from payroll_etl.bronze.loader import run_staging_load
from payroll_etl.common.config import Settings, get_settings
from payroll_etl.common.exceptions import ETLError, PipelineHaltError
from payroll_etl.common.logging import configure_logging
from payroll_etl.common.quality_checks import validate_post_load
from payroll_etl.gold.aggregator import resolve_min_fiscal_year, run_aggregation
from payroll_etl.gold.sink import SinkDestination, get_destinations, write_summary

logger = logging.getLogger(__name__)


def _step_header(number: int, title: str) -> None:
    logger.info("")
    logger.info("=" * 70)
    logger.info(f"  STEP {number}: {title}")
    logger.info("=" * 70)


def _check_cancelled(cancel_event: Optional[threading.Event], next_step: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PipelineHaltError(f"Pipeline cancelled before {next_step}", step=next_step)


def run_payroll_pipeline(
    settings: Optional[Settings] = None,
    data_dir: Optional[str] = None,
    min_fiscal_year: Any = None,
    staging_engine=None,
    destinations: Optional[Sequence[SinkDestination]] = None,
    extract: Optional[bool] = None,
    validate: bool = True,
    cancel_event: Optional[threading.Event] = None,
) -> Dict[str, Any]:
    """
    Run the complete payroll pipeline.

    Pipeline Flow:
        Data lake (optional) -> Staging tables (5 loads in parallel)
        -> Aggregation -> Summary in every destination -> Validation

    Args:
        settings: Pipeline settings (loaded from the environment if not provided)
        data_dir: Directory containing source CSV files
        min_fiscal_year: Minimum fiscal year to aggregate (default from settings)
        staging_engine: Engine for the staging tables
        destinations: Sink destinations (default: the two configured ones)
        extract: Download sources from the data lake first
            (default: when a MinIO endpoint is configured)
        validate: Run post-load validation and fail the run on errors
        cancel_event: When set, the run stops before the next step starts

    Returns:
        dict: Results from each step

    Raises:
        PipelineHaltError: If any step fails; downstream steps are not run
    """
    settings = settings or get_settings()
    data_dir = data_dir or settings.data_dir
    if min_fiscal_year is None:
        min_fiscal_year = settings.min_fiscal_year

    results: Dict[str, Any] = {
        "status": "running",
        "min_fiscal_year": None,
        "extract": None,
        "loads": None,
        "aggregation": None,
        "sinks": None,
        "post_load_validation": None,
    }

    step = "parameters"
    try:
        # STEP 0: PARAMETERS - fail before any data is touched
        min_year = resolve_min_fiscal_year(min_fiscal_year)
        results["min_fiscal_year"] = min_year

        staging_engine = staging_engine or get_engine(settings.staging_database_url)
        destinations = list(destinations) if destinations is not None else get_destinations(settings)

        # STEP 1: EXTRACT - optional download from the data lake
        if extract is None:
            extract = settings.minio.enabled
        if extract:
            step = "extract"
            _check_cancelled(cancel_event, step)
            _step_header(1, "EXTRACT - Downloading source files from the data lake")
            results["extract"] = extract_from_data_lake(
                endpoint=settings.minio.endpoint,
                access_key=settings.minio.access_key,
                secret_key=settings.minio.secret_key,
                bucket_name=settings.minio.bucket_name,
                download_dir=data_dir,
                secure=settings.minio.secure,
                object_names=list(settings.source_files.values()),
            )

        # STEP 2: STAGING LOAD - five independent loads joined before aggregation
        step = "load"
        _check_cancelled(cancel_event, step)
        _step_header(2, "STAGING LOAD - Loading source files")

        load_result = run_staging_load(data_dir, staging_engine, settings)
        results["loads"] = load_result["loads"]

        if load_result["failures"]:
            failures = load_result["failures"]
            first = next(iter(failures.values()))
            raise PipelineHaltError(
                f"{len(failures)} source load(s) failed: {sorted(failures)}",
                step=step,
                details={"failed": {name: str(err) for name, err in failures.items()}},
                original_error=first,
            )

        # STEP 3: AGGREGATION
        step = "aggregation"
        _check_cancelled(cancel_event, step)
        _step_header(3, f"AGGREGATION - Total pay per agency (FiscalYear >= {min_year})")

        summary_df = run_aggregation(staging_engine, min_year)
        results["aggregation"] = {"records": len(summary_df)}

        # STEP 4: DUAL SINK
        step = "sink"
        _check_cancelled(cancel_event, step)
        _step_header(4, "SINK - Writing summary to destinations")

        results["sinks"] = write_summary(summary_df, destinations, batch_size=settings.batch_size)

        # STEP 5: POST-LOAD VALIDATION
        if validate:
            step = "post_load_validation"
            _check_cancelled(cancel_event, step)
            _step_header(5, "POST-LOAD VALIDATION")

            report = validate_post_load(staging_engine, destinations, summary_df)
            results["post_load_validation"] = report
            if not report.passed:
                raise PipelineHaltError(
                    f"Post-load validation failed: {report.failed_count} checks",
                    step=step,
                )

    except PipelineHaltError as e:
        results["status"] = "failed"
        logger.error(f"PIPELINE FAILED at {e.step}: {e}")
        raise
    except Exception as e:
        results["status"] = "failed"
        logger.error(f"PIPELINE FAILED at {step}: {e}")
        details = dict(e.details) if isinstance(e, ETLError) else {}
        raise PipelineHaltError(
            f"Pipeline halted at step '{step}': {e}",
            step=step,
            details=details,
            original_error=e,
        ) from e

    results["status"] = "success"

    logger.info("")
    logger.info("=" * 70)
    logger.info("PAYROLL PIPELINE COMPLETED SUCCESSFULLY")
    logger.info("=" * 70)
    logger.info("")
    logger.info("Summary:")
    for name, load in results["loads"].items():
        logger.info(f"  Load {name}: {load['records']} records ({load['skipped']} skipped)")
    logger.info(f"  Aggregation: {results['aggregation']['records']} agency/year rows")
    logger.info(f"  Sinks: {results['sinks']}")
    logger.info("")

    return results


if __name__ == "__main__":
    configure_logging()
    run_payroll_pipeline()
