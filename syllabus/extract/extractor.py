from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Union

import yaml

from syllabus.extract.schema import (
    NOT_FOUND,
    BoundedStrategy,
    ExtractionResult,
    FieldResult,
    FieldSpec,
    FieldTable,
    HeadingStrategy,
    LineFilterStrategy,
    LineStrategy,
    MarkerTableStrategy,
    PatternStrategy,
    Strategy,
)
from syllabus.extract.sections import (
    LineFilter,
    Match,
    filter_lines,
    first_pattern,
    first_section,
    line_after_marker,
    marker_table,
)
from syllabus.extract.textnorm import normalize_text
from syllabus.ingest.pipeline import load_document_text

# ---------- field table ----------


def load_fields(path: Path) -> List[FieldSpec]:
    """Field table from YAML: a list of {id, label, strategies} rows."""
    rows = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if isinstance(rows, dict):
        rows = rows.get("fields", [])
    return list(FieldTable(fields=rows or []).fields)


# ---------- strategy evaluation ----------


def _chain(first: LineFilter, then: Optional[LineFilter]) -> LineFilter:
    if then is None:
        return first
    return lambda s: then(first(s))


def evaluate(
    strategy: Strategy, text: str, post_filter: Optional[LineFilter] = None
) -> Optional[Match]:
    """
    Run one strategy against normalized text. `post_filter` is applied to each
    candidate span, so a heading whose filtered span is empty falls through to
    the next heading.
    """
    if isinstance(strategy, BoundedStrategy):
        return first_section(
            text, strategy.headings, strategy.boundaries, post_filter=post_filter
        )
    if isinstance(strategy, HeadingStrategy):
        return first_section(text, strategy.headings, post_filter=post_filter)
    if isinstance(strategy, LineFilterStrategy):
        flags = re.I if strategy.ignore_case else 0
        pattern = re.compile(strategy.pattern, flags)
        return evaluate(
            strategy.source,
            text,
            post_filter=_chain(lambda s: filter_lines(s, pattern), post_filter),
        )

    if isinstance(strategy, MarkerTableStrategy):
        m = marker_table(
            text,
            re.compile(strategy.marker, re.I),
            re.compile(strategy.line_pattern),
            max_blank_lines=strategy.max_blank_lines,
            boundaries=strategy.boundaries,
        )
    elif isinstance(strategy, LineStrategy):
        m = line_after_marker(text, strategy.markers)
    elif isinstance(strategy, PatternStrategy):
        flags = re.I if strategy.ignore_case else 0
        m = first_pattern(text, re.compile(strategy.pattern, flags))
    else:
        raise TypeError(f"Unknown strategy: {type(strategy).__name__}")

    if m is None or post_filter is None:
        return m
    value = post_filter(m.value).strip()
    return Match(value=value, matched=m.matched) if value else None


def extract_field(field: FieldSpec, text: str) -> FieldResult:
    """Strategies in declared order; the first non-empty match wins."""
    for strategy in field.strategies:
        m = evaluate(strategy, text)
        if m is not None and m.value.strip():
            return FieldResult(
                field_id=field.id,
                label=field.label,
                status="ok",
                value=m.value.strip(),
                strategy=strategy.kind,
                matched=m.matched,
            )
    return FieldResult(field_id=field.id, label=field.label, status="not_found")


def extract_fields(
    text: str,
    fields: Union[Iterable[FieldSpec], Mapping[str, FieldSpec]],
    *,
    doc_id: Optional[str] = None,
    source: Optional[str] = None,
) -> ExtractionResult:
    """
    Extract every field from reconstructed (or OCR) text.
    Missing fields resolve to status "not_found"; nothing here raises on absence.
    """
    if isinstance(fields, Mapping):
        fields = fields.values()
    norm = normalize_text(text or "")
    return ExtractionResult(
        doc_id=doc_id,
        source=source,
        fields=[extract_field(f, norm) for f in fields],
    )


# ---------- orchestration ----------


def extract_for_document(
    pdf_path: Path,
    fields_yaml: Path,
    *,
    doc_id: Optional[str] = None,
    verbose: bool = False,
) -> ExtractionResult:
    """
    Load text (text layer or OCR) for one PDF and run the field table over it.
    """
    pdf_path = Path(pdf_path)
    doc = load_document_text(pdf_path, verbose=verbose)
    return extract_fields(
        doc.text,
        load_fields(fields_yaml),
        doc_id=doc_id or pdf_path.stem,
        source=doc.source,
    )


# ---------- serialization ----------

REPORT_FORMATS = ("txt", "json")


def format_text_report(result: ExtractionResult, pdf_path: Optional[Path] = None) -> str:
    out = f"File: {pdf_path}\n\n" if pdf_path is not None else ""
    for label, value in result.as_mapping().items():
        out += f"{label}:\n{value or NOT_FOUND}\n\n"
    return out


def write_text_report(
    result: ExtractionResult, out_path: Path, pdf_path: Optional[Path] = None
) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(format_text_report(result, pdf_path), encoding="utf-8")


def write_json(result: ExtractionResult, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        json.dumps(result.model_dump(exclude_none=True), ensure_ascii=False, indent=2)
        + "\n",
        encoding="utf-8",
    )
