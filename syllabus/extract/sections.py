"""
sections.py

Marker/boundary matching over linearized syllabus text:
- heading spans ending at a blank line, a boundary string or end of text
- marker-anchored table rows (weights, letter grade cutoffs)
- single-line captures after a marker (office hours)
- free pattern scans (email)

All functions expect text passed through `normalize_text` (LF line endings).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

# a blank line, tolerating stray spaces/tabs on it
BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")

LineFilter = Callable[[str], str]


@dataclass(frozen=True)
class Match:
    value: str
    matched: str  # heading / marker text that anchored the value


# -----------------------------
# Line helpers
# -----------------------------


def filter_lines(text: str, pattern: re.Pattern) -> str:
    """Keep the lines (stripped) that match `pattern`, in order."""
    kept = [ln.strip() for ln in text.split("\n") if pattern.search(ln.strip())]
    return "\n".join(ln for ln in kept if ln)


# -----------------------------
# Heading spans
# -----------------------------


def _heading_re(heading: str) -> re.Pattern:
    h = heading.strip()
    if h.endswith(":"):
        return re.compile(re.escape(h), re.I)
    # bare headings must look like one: followed by a colon or a line break
    return re.compile(re.escape(h) + r"[ \t]*(?::|(?=\n)|$)", re.I)


def _blank_line_end(text: str, start: int) -> int:
    m = BLANK_LINE_RE.search(text, start)
    return m.start() if m else len(text)


def _boundary_end(text: str, start: int, boundaries: Sequence[str]) -> Optional[int]:
    # leftmost hit of any boundary, as an offset into `text` itself
    pattern = re.compile("|".join(re.escape(b) for b in boundaries), re.I)
    m = pattern.search(text, start)
    return m.start() if m else None


def section_after(
    text: str, heading: str, boundaries: Optional[Sequence[str]] = None
) -> Optional[str]:
    """
    Text following the first occurrence of `heading`, trimmed.
    A heading directly followed by a blank line yields an empty span.
    Ends at the first boundary (if any is given and found), else at the next
    blank line or end of text. None if the heading is absent.
    """
    m = _heading_re(heading).search(text)
    if not m:
        return None
    start = m.end()

    end = None
    if boundaries:
        end = _boundary_end(text, start, boundaries)
    if end is None:
        end = _blank_line_end(text, start)
    return text[start:end].strip()


def first_section(
    text: str,
    headings: Sequence[str],
    boundaries: Optional[Sequence[str]] = None,
    post_filter: Optional[LineFilter] = None,
) -> Optional[Match]:
    """Try headings in order; accept the first whose (filtered) span is non-empty."""
    for heading in headings:
        span = section_after(text, heading, boundaries)
        if span is None:
            continue
        if post_filter is not None:
            span = post_filter(span).strip()
        if span:
            return Match(value=span, matched=heading)
    return None


# -----------------------------
# Specialized policies
# -----------------------------


def marker_table(
    text: str,
    marker: re.Pattern,
    line_pattern: re.Pattern,
    max_blank_lines: int = 2,
    boundaries: Optional[Sequence[str]] = None,
) -> Optional[Match]:
    """
    Lines matching `line_pattern` that follow an occurrence of `marker`.
    The scan starts with the rest of the marker's own line and stops at the
    first blank line after a hit, or after `max_blank_lines` blank lines
    without any hit. Rows never extend past the first boundary after the
    marker. Later marker occurrences are tried if one yields nothing.
    """
    for m in marker.finditer(text):
        end = _boundary_end(text, m.end(), boundaries) if boundaries else None
        rest_of_line, *lines = text[m.end():end].split("\n")
        rows: List[str] = []
        head = rest_of_line.strip()
        if head and line_pattern.search(head):
            rows.append(head)
        blanks = 0
        for ln in lines:
            s = ln.strip()
            if not s:
                if rows:
                    break
                blanks += 1
                if blanks > max_blank_lines:
                    break
                continue
            if line_pattern.search(s):
                rows.append(s)
        if rows:
            return Match(value="\n".join(rows), matched=m.group(0).strip())
    return None


def line_after_marker(text: str, markers: Sequence[str]) -> Optional[Match]:
    """Rest of the line after the first marker found; markers tried in order."""
    for marker in markers:
        m = re.search(re.escape(marker.strip()), text, re.I)
        if not m:
            continue
        eol = text.find("\n", m.end())
        rest = text[m.end(): eol if eol >= 0 else len(text)]
        rest = rest.strip().lstrip(":").strip()
        if rest:
            return Match(value=rest, matched=marker)
    return None


def first_pattern(text: str, pattern: re.Pattern) -> Optional[Match]:
    m = pattern.search(text)
    if not m:
        return None
    return Match(value=m.group(0), matched=pattern.pattern)

