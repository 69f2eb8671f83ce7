# api/main.py
"""FastAPI application serving the published payroll summary."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, ProgrammingError

from api.summary import router as summary_router
from payroll_etl import __version__

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Payroll Insights API",
    description="""
Read-only access to the yearly payroll summary written by the payroll pipeline.

## Summary
- Total pay (regular gross + overtime + other pay) per agency and fiscal year
- Filter by fiscal year, search by agency name, paginate
- Totals per fiscal year across agencies

Data reflects the last successful pipeline run on the primary destination.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Read-only API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(summary_router)


@app.exception_handler(OperationalError)
@app.exception_handler(ProgrammingError)
async def summary_unavailable_handler(request: Request, exc: Exception):
    """The summary table is missing (no pipeline run yet) or the database is down."""
    logger.error(f"Summary query failed for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Payroll summary is not available yet"},
    )


@app.get("/", tags=["Health"])
def root():
    return {
        "status": "healthy",
        "message": "Payroll Insights API is running",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Service status and the available endpoints."""
    return {
        "status": "healthy",
        "version": __version__,
        "endpoints": {
            "summary": "/summary",
            "years": "/summary/years",
            "agency_year": "/summary/{fiscal_year}/{agency_name}",
        }
    }
