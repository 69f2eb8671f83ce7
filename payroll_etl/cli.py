"""
Command Line Interface for the payroll pipeline
"""

import logging

import click

from payroll_etl.bronze.loader import SOURCE_ENTITIES, run_source_load
from payroll_etl.common.config import get_settings
from payroll_etl.common.exceptions import ETLError
from payroll_etl.common.logging import configure_logging, create_run_log_file
from payroll_etl.gold.aggregator import run_aggregation
from payroll_etl.orchestrator import run_payroll_pipeline

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool, log_dir: str = None) -> None:
    level = logging.DEBUG if verbose else None
    log_file = create_run_log_file(log_dir) if log_dir else None
    configure_logging(level=level, log_file=log_file)


@click.group()
def cli():
    """NYC payroll ETL: load sources, aggregate pay per agency, publish summaries"""


@cli.command()
@click.option('--data-dir', '-d', default=None,
              help='Directory containing source CSV files (default: DATA_DIR)')
@click.option('--min-fiscal-year', '-y', default=None,
              help='Minimum fiscal year to aggregate (default: MIN_FISCAL_YEAR or 2021)')
@click.option('--extract/--no-extract', default=None,
              help='Download source files from the data lake first')
@click.option('--validate/--no-validate', default=True,
              help='Run post-load validation')
@click.option('--log-dir', default=None,
              help='Also write a timestamped run log into this directory')
@click.option('--verbose', '-v', is_flag=True,
              help='Enable verbose logging')
def run(data_dir, min_fiscal_year, extract, validate, log_dir, verbose):
    """Run the full pipeline (manual trigger)."""
    _setup_logging(verbose, log_dir)

    try:
        results = run_payroll_pipeline(
            data_dir=data_dir,
            min_fiscal_year=min_fiscal_year,
            extract=extract,
            validate=validate,
        )
    except ETLError as e:
        raise click.ClickException(f"Pipeline failed: {e}")

    click.echo("Pipeline completed successfully")
    for name, load in results["loads"].items():
        click.echo(f"  {name}: {load['records']} records loaded, {load['skipped']} skipped")
    click.echo(f"  summary rows: {results['aggregation']['records']}")
    for destination, count in results["sinks"].items():
        click.echo(f"  {destination}: {count} rows written")


@cli.command()
@click.argument('entity', type=click.Choice(sorted(SOURCE_ENTITIES)))
@click.option('--data-dir', '-d', default=None,
              help='Directory containing source CSV files (default: DATA_DIR)')
@click.option('--verbose', '-v', is_flag=True,
              help='Enable verbose logging')
def load(entity, data_dir, verbose):
    """Load a single source file into its staging table."""
    _setup_logging(verbose)

    try:
        result = run_source_load(entity, data_dir=data_dir)
    except ETLError as e:
        raise click.ClickException(f"Load failed: {e}")

    click.echo(f"{result['table']}: {result['records']} records loaded, {result['skipped']} skipped")


@cli.command()
@click.option('--min-fiscal-year', '-y', default=None,
              help='Minimum fiscal year to aggregate (default: MIN_FISCAL_YEAR or 2021)')
def preview(min_fiscal_year):
    """Print the aggregation from the staging tables without writing it."""
    _setup_logging(False)
    settings = get_settings()

    try:
        summary = run_aggregation(
            min_fiscal_year=min_fiscal_year if min_fiscal_year is not None else settings.min_fiscal_year
        )
    except ETLError as e:
        raise click.ClickException(f"Aggregation failed: {e}")

    if summary.empty:
        click.echo("No payroll records match the fiscal year threshold")
        return
    ordered = summary.sort_values(["FiscalYear", "AgencyName"])
    click.echo(ordered.to_string(index=False))


def main():
    cli()


if __name__ == '__main__':
    main()
