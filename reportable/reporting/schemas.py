"""Pydantic schemas for report definitions."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reportable.filters.collection import FilterCollection


class ExportMode(str, Enum):
    """How rows are pulled from the query source."""

    CHUNKED = "chunked"
    BULK = "bulk"


class ReportDescriptor(BaseModel):
    """Serializable snapshot of a report definition taken at dispatch time."""

    report_type: str
    arguments: Dict[str, Any] = {}
    filters: List[Dict[str, Any]] = []
    filter_group: Optional[str] = None
    disk: str
    path: str
    chunk_size: int = Field(default=1000, gt=0)
    mode: ExportMode = ExportMode.CHUNKED

    model_config = ConfigDict(extra="forbid")

    @field_validator("report_type")
    @classmethod
    def validate_report_type(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Report type cannot be empty")
        return v.strip()

    @field_validator("arguments")
    @classmethod
    def validate_arguments(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        try:
            json.dumps(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Report arguments must be JSON serializable: {e}")
        return v

    def filter_collection(self) -> FilterCollection:
        return FilterCollection.from_array(self.filters, self.filter_group)
