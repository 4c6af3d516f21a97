"""
Database connection utilities for Celery tasks
"""

from sqlalchemy.orm import Session

from reportable.core.database import DWSessionLocal, SessionLocal


def get_db_session() -> Session:
    """Create and return a session on the config database (export records)"""
    return SessionLocal()


def get_dw_db_session() -> Session:
    """Create and return a session on the data warehouse (report data)"""
    return DWSessionLocal()
