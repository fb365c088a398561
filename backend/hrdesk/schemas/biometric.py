# ruff: noqa: TC003
from __future__ import annotations

from datetime import date
from typing import Self

from pydantic import BaseModel, Field, model_validator


class FetchLogsPayload(BaseModel):
    """Request body for pulling punches from a ZKTeco device."""

    ip: str = Field(min_length=1, max_length=255)
    port: int = Field(default=4370, ge=1, le=65535)
    date_from: date
    date_to: date

    @model_validator(mode="after")
    def _validate_range(self) -> Self:
        if self.date_to < self.date_from:
            msg = "date_to must be on or after date_from"
            raise ValueError(msg)
        return self


class PunchLog(BaseModel):
    idno: str
    punch_time: str


class FetchLogsResponse(BaseModel):
    success: bool
    logs: list[PunchLog] = Field(default_factory=list)
    message: str | None = None
