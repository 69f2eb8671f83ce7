import os
import logging
from typing import Iterable, List, Optional

from minio import Minio
from minio.error import S3Error

from payroll_etl.common.exceptions import SourceUnavailableError

logger = logging.getLogger(__name__)


def extract_from_data_lake(
    endpoint: str,
    access_key: str = "minioadmin",
    secret_key: str = "minioadmin",
    bucket_name: str = "rawdata",
    download_dir: str = "datasets",
    secure: bool = False,
    object_names: Optional[Iterable[str]] = None,
) -> str:
    """
    Download source files from the data lake bucket.

    Args:
        endpoint: MinIO/S3 server endpoint
        access_key: Access key
        secret_key: Secret key
        bucket_name: Bucket containing source files
        download_dir: Local directory to save files
        secure: Use HTTPS connection
        object_names: Objects to download (default: every object in the bucket)

    Returns:
        Path to download directory

    Raises:
        SourceUnavailableError: If the bucket or an object cannot be read
    """
    logger.info(f"Connecting to data lake at {endpoint}")

    client = Minio(
        endpoint,
        access_key=access_key,
        secret_key=secret_key,
        secure=secure,
    )

    os.makedirs(download_dir, exist_ok=True)
    downloaded_files: List[str] = []
    object_name = None

    try:
        if object_names is None:
            object_names = [
                obj.object_name
                for obj in client.list_objects(bucket_name, recursive=True)
                if not obj.is_dir
            ]

        for object_name in object_names:
            local_path = os.path.join(download_dir, object_name)
            os.makedirs(os.path.dirname(local_path) or download_dir, exist_ok=True)

            client.fget_object(bucket_name, object_name, local_path)
            downloaded_files.append(local_path)
            logger.info(f"Downloaded: {local_path}")

    except S3Error as e:
        source = f"{bucket_name}/{object_name}" if object_name else bucket_name
        logger.error(f"Data lake extraction failed for {source}: {e}")
        raise SourceUnavailableError(
            f"Cannot download from data lake: {e}",
            source=source,
            original_error=e,
        ) from e

    logger.info(f"Extraction complete: {len(downloaded_files)} files downloaded")
    return download_dir
