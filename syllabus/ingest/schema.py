from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

# -----------------------------
# Decoder contract
# -----------------------------


class PositionedRun(BaseModel):
    """One decoded text fragment with its baseline origin in page space."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str = Field(..., min_length=1)
    x: float
    y: float


class Page(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    number: int = Field(..., ge=1, description="1-based page index")
    # decoder paint order, not necessarily reading order
    runs: List[PositionedRun] = Field(default_factory=list)
