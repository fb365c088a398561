from __future__ import annotations

from pydantic import BaseModel, Field


class RowFailure(BaseModel):
    """Validation errors for one spreadsheet row, numbered as in the sheet."""

    row: int
    errors: list[str]


class ImportResult(BaseModel):
    """Summary of a spreadsheet import."""

    message: str
    failures: list[RowFailure] = Field(default_factory=list)
    total_processed: int
    successful: int
    failed: int


class ClearResult(BaseModel):
    message: str
    deleted: int
