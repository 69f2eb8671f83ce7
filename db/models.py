# db/models.py
"""
Table models for the payroll pipeline.

Staging tables hold the five source files (three master tables and one
table per fiscal-year payroll extract). Summary tables hold the yearly
per-agency aggregation and are created in every sink destination.

Column names match the source files exactly.
"""

from sqlalchemy import Column, Integer, String, Date, Float, Table
from sqlalchemy.orm import declarative_base

StagingBase = declarative_base()
SummaryBase = declarative_base()


class EmployeeMaster(StagingBase):
    """Employee master data (EmpMaster.csv)."""

    __tablename__ = "employee_master"

    employee_id = Column("EmployeeID", String(10), primary_key=True)
    last_name = Column("LastName", String(20))
    first_name = Column("FirstName", String(20))

    def __repr__(self):
        return f"<EmployeeMaster(id={self.employee_id}, name={self.first_name} {self.last_name})>"


class AgencyMaster(StagingBase):
    """Agency master data (AgencyMaster.csv)."""

    __tablename__ = "agency_master"

    agency_id = Column("AgencyID", String(10), primary_key=True)
    agency_name = Column("AgencyName", String(50))

    def __repr__(self):
        return f"<AgencyMaster(id={self.agency_id}, name={self.agency_name})>"


class TitleMaster(StagingBase):
    """Job title master data (TitleMaster.csv)."""

    __tablename__ = "title_master"

    title_code = Column("TitleCode", String(10), primary_key=True)
    title_description = Column("TitleDescription", String(100))

    def __repr__(self):
        return f"<TitleMaster(code={self.title_code})>"


def payroll_columns():
    """Columns of a fiscal-year payroll extract, in file order."""
    return [
        Column("FiscalYear", Integer),
        Column("PayrollNumber", Integer),
        Column("AgencyID", String(10)),
        Column("AgencyName", String(50)),
        Column("EmployeeID", String(10)),
        Column("LastName", String(20)),
        Column("FirstName", String(20)),
        Column("AgencyStartDate", Date),
        Column("WorkLocationBorough", String(50)),
        Column("TitleCode", String(10)),
        Column("TitleDescription", String(100)),
        Column("LeaveStatus", String(50)),
        Column("BaseSalary", Float),
        Column("PayBasis", String(50)),
        Column("RegularHours", Float),
        Column("RegularGrossPaid", Float),
        Column("OTHours", Float),
        Column("TotalOTPaid", Float),
        Column("TotalOtherPay", Float),
    ]


# The logical key (EmployeeID, FiscalYear, PayrollNumber) is mapped for the
# ORM only; source extracts are loaded as-is, so it is not a DB constraint.
class Payroll2020(StagingBase):
    """Fiscal year 2020 payroll extract."""

    __table__ = Table("payroll_2020", StagingBase.metadata, *payroll_columns())
    __mapper_args__ = {
        "primary_key": [__table__.c.EmployeeID, __table__.c.FiscalYear, __table__.c.PayrollNumber]
    }


class Payroll2021(StagingBase):
    """Fiscal year 2021 payroll extract."""

    __table__ = Table("payroll_2021", StagingBase.metadata, *payroll_columns())
    __mapper_args__ = {
        "primary_key": [__table__.c.EmployeeID, __table__.c.FiscalYear, __table__.c.PayrollNumber]
    }


class PayrollSummary(SummaryBase):
    """Total pay per agency and fiscal year. One copy per sink destination."""

    __tablename__ = "payroll_summary"

    fiscal_year = Column("FiscalYear", Integer, primary_key=True)
    agency_name = Column("AgencyName", String(50), primary_key=True)
    total_paid = Column("TotalPaid", Float, nullable=False)

    def __repr__(self):
        return f"<PayrollSummary(year={self.fiscal_year}, agency={self.agency_name}, total={self.total_paid})>"


PAYROLL_COLUMNS = tuple(c.name for c in Payroll2020.__table__.columns)
SUMMARY_COLUMNS = ("FiscalYear", "AgencyName", "TotalPaid")
SUMMARY_KEY_COLUMNS = ("AgencyName", "FiscalYear")
