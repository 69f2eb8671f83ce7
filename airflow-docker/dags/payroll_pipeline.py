"""
Airflow DAG for the payroll pipeline
Loads the five source files in parallel, then aggregates and publishes the summary
"""

from datetime import datetime, timedelta
import logging

from airflow import DAG
from airflow.exceptions import AirflowFailException
from airflow.operators.python import PythonOperator

from db.db_utils import get_engine
from payroll_etl.bronze.extractor import extract_from_data_lake
from payroll_etl.bronze.loader import SOURCE_ENTITIES, run_source_load
from payroll_etl.common.config import DEFAULT_MIN_FISCAL_YEAR, get_settings
from payroll_etl.common.exceptions import ParameterError
from payroll_etl.common.quality_checks import validate_post_load
from payroll_etl.gold.aggregator import resolve_min_fiscal_year, run_aggregation
from payroll_etl.gold.sink import get_destinations, read_summary, write_summary

logger = logging.getLogger(__name__)

# Default arguments for the DAG
default_args = {
    'owner': 'airflow',
    'depends_on_past': False,
    'email_on_failure': False,
    'email_on_retry': False,
    # Steps fully replace their tables
    'retries': 1,
    'retry_delay': timedelta(minutes=5),
}

# DAG definition
dag = DAG(
    'payroll_summary_etl',
    default_args=default_args,
    description='Load NYC payroll sources and publish the yearly agency summary',
    schedule='@daily',
    start_date=datetime(2025, 12, 17),
    catchup=False,
    params={'min_fiscal_year': DEFAULT_MIN_FISCAL_YEAR},
    tags=['payroll', 'etl', 'summary'],
)


# Task 1: Validate parameters before touching any data
def validate_parameters_task(**context):
    """Fail fast on an invalid fiscal year threshold"""
    try:
        min_year = resolve_min_fiscal_year(context['params'].get('min_fiscal_year'))
    except ParameterError as e:
        # No retry for invalid parameters
        raise AirflowFailException(str(e)) from e
    context['ti'].xcom_push(key='min_fiscal_year', value=min_year)
    return min_year


# Task 2: Extract source files from the data lake
def extract_task(**context):
    """Download the configured source files when a data lake is configured"""
    settings = get_settings()
    if not settings.minio.enabled:
        logger.info("No data lake endpoint configured; using files in %s", settings.data_dir)
        return settings.data_dir

    return extract_from_data_lake(
        endpoint=settings.minio.endpoint,
        access_key=settings.minio.access_key,
        secret_key=settings.minio.secret_key,
        bucket_name=settings.minio.bucket_name,
        download_dir=settings.data_dir,
        secure=settings.minio.secure,
        object_names=list(settings.source_files.values()),
    )


# Tasks 3a-3e: Load one source file into its staging table
def load_entity_task(entity_name, **context):
    """Replace one staging table with its source file"""
    result = run_source_load(entity_name)
    context['ti'].xcom_push(key='records', value=result['records'])
    return result['records']


# Task 4: Aggregate and write both destinations
def aggregate_and_sink_task(**context):
    """Aggregate the payroll tables and write the summary to every destination"""
    settings = get_settings()
    min_year = context['ti'].xcom_pull(key='min_fiscal_year', task_ids='validate_parameters')

    summary_df = run_aggregation(get_engine(settings.staging_database_url), min_year)
    written = write_summary(summary_df, get_destinations(settings), batch_size=settings.batch_size)

    context['ti'].xcom_push(key='summary_records', value=len(summary_df))
    return written


# Task 5: Post-load validation
def validate_task(**context):
    """Check that both destinations hold the same, complete summary"""
    settings = get_settings()
    destinations = get_destinations(settings)
    reference = read_summary(destinations[0].engine)

    report = validate_post_load(get_engine(settings.staging_database_url), destinations, reference)
    if not report.passed:
        raise AirflowFailException(f"Post-load validation failed: {report.failed_count} checks")


# Define tasks
validate_parameters = PythonOperator(
    task_id='validate_parameters',
    python_callable=validate_parameters_task,
    dag=dag,
)

extract = PythonOperator(
    task_id='extract_from_data_lake',
    python_callable=extract_task,
    dag=dag,
)

load_tasks = [
    PythonOperator(
        task_id=f'load_{entity_name}',
        python_callable=load_entity_task,
        op_kwargs={'entity_name': entity_name},
        dag=dag,
    )
    for entity_name in SOURCE_ENTITIES
]

aggregate_and_sink = PythonOperator(
    task_id='aggregate_and_sink',
    python_callable=aggregate_and_sink_task,
    dag=dag,
)

post_load_validation = PythonOperator(
    task_id='post_load_validation',
    python_callable=validate_task,
    dag=dag,
)

# Define task dependencies
# Loads run in parallel; aggregation waits for all of them
validate_parameters >> extract >> load_tasks >> aggregate_and_sink >> post_load_validation
