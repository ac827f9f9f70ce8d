from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class DumpStatus(StrEnum):
    """Possible outcomes of triggering a batch."""

    STARTED = "started"
    ABORTED = "aborted"


class DumpRequest(BaseModel):
    """Result of the output directory picker; ``null`` means dismissed."""

    output_dir: str | None = None


class DumpResponse(BaseModel):
    status: DumpStatus
    total: int
    output_dir: str | None = None
