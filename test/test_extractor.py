"""Tests for downloading source files from the data lake."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from minio.error import S3Error

from payroll_etl.bronze.extractor import extract_from_data_lake
from payroll_etl.common.exceptions import SourceUnavailableError


class FakeS3Error(S3Error):
    def __init__(self, code):
        self.code = code

    def __str__(self):
        return f"S3 operation failed; code: {self.code}"


@pytest.fixture
def minio_client():
    with patch("payroll_etl.bronze.extractor.Minio") as minio_cls:
        client = MagicMock()
        minio_cls.return_value = client
        yield minio_cls, client


def test_downloads_named_objects(tmp_path, minio_client):
    minio_cls, client = minio_client

    result = extract_from_data_lake(
        "localhost:9000",
        download_dir=str(tmp_path / "datasets"),
        object_names=["EmpMaster.csv", "nycpayroll_2021.csv"],
    )

    assert result == str(tmp_path / "datasets")
    minio_cls.assert_called_once_with(
        "localhost:9000", access_key="minioadmin", secret_key="minioadmin", secure=False,
    )
    downloaded = [c.args[1] for c in client.fget_object.call_args_list]
    assert downloaded == ["EmpMaster.csv", "nycpayroll_2021.csv"]
    assert client.fget_object.call_args_list[0].args[2] == str(tmp_path / "datasets" / "EmpMaster.csv")
    client.list_objects.assert_not_called()


def test_downloads_whole_bucket_when_no_names_given(tmp_path, minio_client):
    _, client = minio_client
    client.list_objects.return_value = [
        SimpleNamespace(object_name="AgencyMaster.csv", is_dir=False),
        SimpleNamespace(object_name="archive/", is_dir=True),
    ]

    extract_from_data_lake("localhost:9000", bucket_name="payroll", download_dir=str(tmp_path))

    client.list_objects.assert_called_once_with("payroll", recursive=True)
    client.fget_object.assert_called_once_with("payroll", "AgencyMaster.csv", str(tmp_path / "AgencyMaster.csv"))


def test_missing_object_is_source_unavailable(tmp_path, minio_client):
    _, client = minio_client
    client.fget_object.side_effect = FakeS3Error("NoSuchKey")

    with pytest.raises(SourceUnavailableError) as exc_info:
        extract_from_data_lake("localhost:9000", download_dir=str(tmp_path), object_names=["TitleMaster.csv"])

    assert exc_info.value.source == "rawdata/TitleMaster.csv"
    assert isinstance(exc_info.value.original_error, S3Error)
