from __future__ import annotations

import re
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Status = Literal["ok", "not_found"]

NOT_FOUND = "Not found"


def _check_regex(v: str) -> str:
    try:
        re.compile(v)
    except re.error as e:
        raise ValueError(f"invalid regex {v!r}: {e}") from e
    return v


# -----------------------------
# Strategies (closed set, dispatched on `kind`)
# -----------------------------


class HeadingStrategy(BaseModel):
    """Span from a heading to the next blank line or end of text."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["heading"] = "heading"
    headings: List[str] = Field(..., min_length=1)

    @field_validator("headings")
    @classmethod
    def _non_blank(cls, v: List[str]) -> List[str]:
        if any(not h.strip() for h in v):
            raise ValueError("empty heading")
        return v


class BoundedStrategy(HeadingStrategy):
    """Span from a heading to the first boundary string after it."""

    kind: Literal["bounded"] = "bounded"
    boundaries: List[str] = Field(..., min_length=1)

    @field_validator("boundaries")
    @classmethod
    def _non_blank_boundaries(cls, v: List[str]) -> List[str]:
        if any(not b.strip() for b in v):
            raise ValueError("empty boundary")
        return v


class MarkerTableStrategy(BaseModel):
    """Table-shaped lines following a marker, e.g. letter grade cutoffs."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["marker_table"] = "marker_table"
    marker: str  # case-insensitive
    line_pattern: str  # case-sensitive, searched in each stripped line
    max_blank_lines: int = Field(2, ge=1)
    # row scan stops at the first of these after the marker
    boundaries: List[str] = Field(default_factory=list)

    @field_validator("marker", "line_pattern")
    @classmethod
    def _valid_regex(cls, v: str) -> str:
        return _check_regex(v)

    @field_validator("boundaries")
    @classmethod
    def _non_blank_boundaries(cls, v: List[str]) -> List[str]:
        if any(not b.strip() for b in v):
            raise ValueError("empty boundary")
        return v


class LineStrategy(BaseModel):
    """Rest of the line after the first marker present in the text."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["line"] = "line"
    markers: List[str] = Field(..., min_length=1)


class PatternStrategy(BaseModel):
    """First match of a pattern anywhere in the text."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["pattern"] = "pattern"
    pattern: str
    ignore_case: bool = False

    @field_validator("pattern")
    @classmethod
    def _valid_regex(cls, v: str) -> str:
        return _check_regex(v)


class LineFilterStrategy(BaseModel):
    """Keep only the lines of the inner strategy's span that match `pattern`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["line_filter"] = "line_filter"
    pattern: str
    ignore_case: bool = True
    source: "Strategy"

    @field_validator("pattern")
    @classmethod
    def _valid_regex(cls, v: str) -> str:
        return _check_regex(v)


Strategy = Annotated[
    Union[
        HeadingStrategy,
        BoundedStrategy,
        MarkerTableStrategy,
        LineStrategy,
        PatternStrategy,
        LineFilterStrategy,
    ],
    Field(discriminator="kind"),
]

LineFilterStrategy.model_rebuild()


class FieldSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    label: str = Field(..., min_length=1)
    # tried in order; the first non-empty match wins
    strategies: List[Strategy] = Field(..., min_length=1)


class FieldTable(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    fields: List[FieldSpec] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_ids(self) -> "FieldTable":
        ids = [f.id for f in self.fields]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate field id")
        return self


# -----------------------------
# Results
# -----------------------------


class FieldResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    field_id: str
    label: str
    status: Status
    value: Optional[str] = None
    strategy: Optional[str] = None  # kind that produced the value
    matched: Optional[str] = None  # heading / marker that matched

    @model_validator(mode="after")
    def _check_consistency(self) -> "FieldResult":
        if self.status == "ok" and not (self.value and self.value.strip()):
            raise ValueError("status=ok requires a non-empty value")
        if self.status == "not_found" and self.value is not None:
            raise ValueError("status=not_found must not carry a value")
        return self


class ExtractionResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    doc_id: Optional[str] = None
    source: Optional[Literal["text", "ocr"]] = None
    fields: List[FieldResult] = Field(default_factory=list)

    def get(self, field_id: str) -> Optional[FieldResult]:
        for f in self.fields:
            if f.field_id == field_id:
                return f
        return None

    def as_mapping(self) -> Dict[str, str]:
        """label -> value, with the "Not found" sentinel for missing fields."""
        return {
            f.label: f.value if f.status == "ok" else NOT_FOUND for f in self.fields
        }
