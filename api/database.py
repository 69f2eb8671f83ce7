# api/database.py
"""Session dependency bound to the primary summary destination."""

from typing import Generator

from sqlalchemy.orm import Session

from db.db_utils import get_session, get_engine
from payroll_etl.common.config import get_settings


def get_db() -> Generator[Session, None, None]:
    """Yield a session on the primary sink; closed when the request ends."""
    db = get_session(get_engine(get_settings().sink_primary_url))
    try:
        yield db
    finally:
        db.close()
