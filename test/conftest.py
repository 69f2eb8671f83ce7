"""Shared fixtures: temporary SQLite databases and source CSV files."""

import csv
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine

from db.models import PAYROLL_COLUMNS
from payroll_etl.common.config import Settings
from payroll_etl.gold.sink import SinkDestination


EMPLOYEE_HEADER = ["EmployeeID", "LastName", "FirstName"]
AGENCY_HEADER = ["AgencyID", "AgencyName"]
TITLE_HEADER = ["TitleCode", "TitleDescription"]


def payroll_row(**overrides) -> Dict[str, str]:
    """A complete payroll source row as strings."""
    row = {
        "FiscalYear": "2021",
        "PayrollNumber": "56",
        "AgencyID": "056",
        "AgencyName": "NYPD",
        "EmployeeID": "E1001",
        "LastName": "SMITH",
        "FirstName": "JOHN",
        "AgencyStartDate": "07/31/1995",
        "WorkLocationBorough": "MANHATTAN",
        "TitleCode": "70210",
        "TitleDescription": "POLICE OFFICER",
        "LeaveStatus": "ACTIVE",
        "BaseSalary": "85292.00",
        "PayBasis": "per Annum",
        "RegularHours": "2080.00",
        "RegularGrossPaid": "50000.00",
        "OTHours": "10.00",
        "TotalOTPaid": "2000.00",
        "TotalOtherPay": "0.00",
    }
    row.update(overrides)
    return row


def write_csv(path: Path, header: List[str], rows: List[List[str]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(header)
        writer.writerows(rows)
    return path


def write_payroll_csv(path: Path, rows: List[Dict[str, str]]) -> Path:
    return write_csv(path, list(PAYROLL_COLUMNS), [[r[c] for c in PAYROLL_COLUMNS] for r in rows])


@pytest.fixture
def staging_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'staging.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def destinations(tmp_path):
    engines = [
        SinkDestination("warehouse", create_engine(f"sqlite:///{tmp_path / 'warehouse.db'}")),
        SinkDestination("sqldb", create_engine(f"sqlite:///{tmp_path / 'sqldb.db'}")),
    ]
    yield engines
    for destination in engines:
        destination.engine.dispose()


@pytest.fixture
def data_dir(tmp_path):
    """A data directory holding all five source files."""
    directory = tmp_path / "datasets"
    write_csv(directory / "EmpMaster.csv", EMPLOYEE_HEADER, [
        ["E1001", "SMITH", "JOHN"],
        ["E1002", "JONES", "MARY"],
        ["E1003", "BROWN", "ALEX"],
    ])
    write_csv(directory / "AgencyMaster.csv", AGENCY_HEADER, [
        ["056", "NYPD"],
        ["057", "FIRE DEPARTMENT"],
    ])
    write_csv(directory / "TitleMaster.csv", TITLE_HEADER, [
        ["70210", "POLICE OFFICER"],
        ["53053", "FIREFIGHTER"],
    ])
    write_payroll_csv(directory / "nycpayroll_2020.csv", [
        payroll_row(FiscalYear="2020", RegularGrossPaid="40000", TotalOTPaid="1000", TotalOtherPay="0"),
        payroll_row(FiscalYear="2020", EmployeeID="E1003", AgencyID="057", AgencyName="FIRE DEPARTMENT",
                    TitleCode="53053", TitleDescription="FIREFIGHTER",
                    RegularGrossPaid="45000", TotalOTPaid="", TotalOtherPay="250"),
    ])
    write_payroll_csv(directory / "nycpayroll_2021.csv", [
        payroll_row(RegularGrossPaid="50000", TotalOTPaid="2000", TotalOtherPay="0"),
        payroll_row(EmployeeID="E1002", LastName="JONES", FirstName="MARY",
                    RegularGrossPaid="30000", TotalOTPaid="0", TotalOtherPay="500"),
        payroll_row(EmployeeID="E1003", AgencyID="057", AgencyName="FIRE DEPARTMENT",
                    TitleCode="53053", TitleDescription="FIREFIGHTER",
                    RegularGrossPaid="47000", TotalOTPaid="3000.5", TotalOtherPay="N/A"),
    ])
    return directory


@pytest.fixture
def settings(tmp_path, data_dir):
    """Settings pointing at the temporary data directory, loads run one at a time."""
    return Settings(
        staging_database_url=f"sqlite:///{tmp_path / 'staging.db'}",
        sink_primary_url=f"sqlite:///{tmp_path / 'warehouse.db'}",
        sink_secondary_url=f"sqlite:///{tmp_path / 'sqldb.db'}",
        data_dir=str(data_dir),
        load_workers=1,
        batch_size=2,
    )


def summary_as_dict(df) -> Dict[tuple, float]:
    """Summary rows keyed by (AgencyName, FiscalYear)."""
    return {
        (row.AgencyName, int(row.FiscalYear)): float(row.TotalPaid)
        for row in df.itertuples(index=False)
    }
