"""Pydantic schemas for data exports."""
from datetime import date
from enum import Enum

from pydantic import BaseModel


class ExportFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"


class ExportRequest(BaseModel):
    """Date window and output flavour for an export.

    The start <= end invariant is checked by the exporter, not here, so that
    it surfaces as InvalidDateRangeError instead of a generic 422 body.
    """

    start_date: date
    end_date: date
    format: ExportFormat = ExportFormat.CSV
