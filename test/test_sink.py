"""Tests for writing the summary to both destinations."""

import pandas as pd
import pytest
from sqlalchemy import create_engine

from payroll_etl.common.exceptions import DestinationWriteError
from payroll_etl.common.quality_checks import check_sink_consistency
from payroll_etl.gold.sink import (
    SinkDestination,
    get_destinations,
    read_summary,
    write_summary,
    write_summary_to_destination,
)

from conftest import summary_as_dict


def _summary(rows):
    return pd.DataFrame(rows, columns=["FiscalYear", "AgencyName", "TotalPaid"])


SUMMARY = _summary([
    (2021, "NYPD", 82500.0),
    (2021, "FIRE DEPARTMENT", 50000.5),
    (2022, "NYPD", 1000.0),
])


@pytest.fixture
def broken_destination(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'no_such_dir' / 'sink.db'}")
    yield SinkDestination("broken", engine)
    engine.dispose()


def test_both_destinations_receive_identical_rows(destinations):
    written = write_summary(SUMMARY, destinations)

    assert written == {"warehouse": 3, "sqldb": 3}
    frames = {d.name: read_summary(d.engine) for d in destinations}
    assert check_sink_consistency(frames, ["FiscalYear", "AgencyName", "TotalPaid"]).passed
    assert summary_as_dict(frames["warehouse"]) == summary_as_dict(SUMMARY)


def test_write_replaces_previous_summary(destinations):
    write_summary(SUMMARY, destinations)
    write_summary(_summary([(2023, "DOE", 10.0)]), destinations)

    for destination in destinations:
        assert summary_as_dict(read_summary(destination.engine)) == {("DOE", 2023): 10.0}


def test_empty_summary_clears_destination(destinations):
    write_summary(SUMMARY, destinations)

    written = write_summary(SUMMARY.iloc[0:0], destinations)

    assert written == {"warehouse": 0, "sqldb": 0}
    for destination in destinations:
        assert read_summary(destination.engine).empty


def test_single_destination_write_raises_destination_error(broken_destination):
    with pytest.raises(DestinationWriteError) as exc_info:
        write_summary_to_destination(SUMMARY, broken_destination)

    assert exc_info.value.destination == "broken"
    assert exc_info.value.original_error is not None


def test_failed_destination_does_not_undo_the_other(destinations, broken_destination):
    healthy = destinations[0]

    with pytest.raises(DestinationWriteError) as exc_info:
        write_summary(SUMMARY, [healthy, broken_destination])

    assert exc_info.value.details["failed"] == ["broken"]
    assert exc_info.value.details["written"] == {"warehouse": 3}
    assert len(read_summary(healthy.engine)) == 3


def test_get_destinations_uses_configured_names(settings):
    destinations = get_destinations(settings)

    assert [d.name for d in destinations] == ["warehouse", "sqldb"]
    assert str(destinations[0].engine.url) == settings.sink_primary_url
