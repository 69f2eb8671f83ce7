"""Pydantic schemas for response validation."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


# SUMMARY SCHEMAS

class SummaryResponse(BaseModel):
    """Total pay of one agency in one fiscal year."""
    model_config = ConfigDict(from_attributes=True)

    fiscal_year: int = Field(..., description="Fiscal year")
    agency_name: str = Field(..., description="Agency name")
    total_paid: float = Field(..., description="Regular gross + overtime + other pay")


class SummaryListResponse(BaseModel):
    """Paginated list of summary rows."""
    total: int
    page: int
    page_size: int
    summaries: List[SummaryResponse]


class FiscalYearTotal(BaseModel):
    """Total pay across all agencies for a fiscal year."""
    fiscal_year: int
    agency_count: int
    total_paid: float
