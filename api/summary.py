from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from api.database import get_db
from api.schemas import FiscalYearTotal, SummaryListResponse, SummaryResponse
from db.models import PayrollSummary

router = APIRouter(prefix="/summary", tags=["Summary"])


@router.get("", response_model=SummaryListResponse)
def list_summaries(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    fiscal_year: Optional[int] = Query(None, description="Filter by fiscal year"),
    agency: Optional[str] = Query(None, description="Search by agency name"),
    db: Session = Depends(get_db)
):
    """
    List yearly agency pay totals with pagination and filtering.

    - **page**: Page number (default: 1)
    - **page_size**: Items per page (default: 20, max: 100)
    - **fiscal_year**: Only rows for this fiscal year
    - **agency**: Case-insensitive substring of the agency name
    """
    query = db.query(PayrollSummary)

    if fiscal_year is not None:
        query = query.filter(PayrollSummary.fiscal_year == fiscal_year)
    if agency:
        query = query.filter(PayrollSummary.agency_name.ilike(f"%{agency}%"))

    total = query.count()

    offset = (page - 1) * page_size
    rows = (
        query.order_by(PayrollSummary.fiscal_year, PayrollSummary.agency_name)
        .offset(offset)
        .limit(page_size)
        .all()
    )

    return SummaryListResponse(
        total=total,
        page=page,
        page_size=page_size,
        summaries=[SummaryResponse.model_validate(row) for row in rows]
    )


@router.get("/years", response_model=List[FiscalYearTotal])
def list_fiscal_years(db: Session = Depends(get_db)):
    """Total pay and number of agencies per fiscal year."""
    rows = (
        db.query(
            PayrollSummary.fiscal_year,
            func.count(PayrollSummary.agency_name),
            func.sum(PayrollSummary.total_paid),
        )
        .group_by(PayrollSummary.fiscal_year)
        .order_by(PayrollSummary.fiscal_year)
        .all()
    )
    return [
        FiscalYearTotal(fiscal_year=year, agency_count=count, total_paid=total or 0.0)
        for year, count, total in rows
    ]


@router.get("/{fiscal_year}/{agency_name}", response_model=SummaryResponse)
def get_summary(fiscal_year: int, agency_name: str, db: Session = Depends(get_db)):
    """
    Get the pay total of one agency in one fiscal year.

    - **fiscal_year**: Fiscal year
    - **agency_name**: Exact agency name
    """
    row = (
        db.query(PayrollSummary)
        .filter(PayrollSummary.fiscal_year == fiscal_year, PayrollSummary.agency_name == agency_name)
        .first()
    )
    if not row:
        raise HTTPException(
            status_code=404,
            detail=f"No summary for agency '{agency_name}' in fiscal year {fiscal_year}"
        )
    return row
