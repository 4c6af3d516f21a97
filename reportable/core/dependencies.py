# reportable/core/dependencies.py
"""Session dependencies for the API layer."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from reportable.core.database import get_db, get_dw_db

SessionDep = Annotated[Session, Depends(get_db)]
DWSessionDep = Annotated[Session, Depends(get_dw_db)]
