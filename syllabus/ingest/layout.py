"""
layout.py

Linearizes decoded PDF pages into plain text:
- walks each page's runs in paint order
- infers line breaks from leftward jumps in x
- infers word gaps from baseline changes, except after bare-letter fragments

PDF decoding itself is left to PyMuPDF; this module only consumes its spans.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Optional

import fitz  # PyMuPDF

from syllabus.ingest.schema import Page, PositionedRun

LINE_BREAK = "\r\n"
PAGE_SEPARATOR = "\n\n"

# a single letter, optionally preceded by one whitespace char: "A", " b"
BARE_LETTER_RE = re.compile(r"^\s?[a-zA-Z]\Z")


def _separator(prev: Optional[PositionedRun], cur: PositionedRun) -> str:
    """What goes between the previous run and the current one."""
    if prev is None or prev.text.endswith(" "):
        return ""
    if cur.x < prev.x:
        return LINE_BREAK
    if cur.y != prev.y and not BARE_LETTER_RE.match(prev.text):
        return " "
    # same baseline, or a word split into letter fragments
    return ""


def reconstruct_page(runs: Iterable[PositionedRun]) -> str:
    parts: List[str] = []
    last: Optional[PositionedRun] = None
    for run in runs:
        parts.append(_separator(last, run))
        parts.append(run.text)
        last = run
    return "".join(parts) + PAGE_SEPARATOR


def reconstruct(pages: Iterable[Page]) -> str:
    """
    Concatenate the linearized text of every page in the given order.
    Each page is followed by a blank line; no state crosses page boundaries.
    """
    return "".join(reconstruct_page(p.runs) for p in pages)


# -----------------------------
# PyMuPDF adapter
# -----------------------------


class PDFLoader:
    """Light wrapper around PyMuPDF that yields pages of positioned runs."""

    def __init__(self, path: str):
        self.path = path
        # corrupt input raises here (fitz.FileDataError) and is not masked
        self.doc = fitz.open(path)

    def __enter__(self) -> "PDFLoader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.doc.close()

    def page_count(self) -> int:
        return len(self.doc)

    def get_page(self, i: int) -> fitz.Page:
        return self.doc[i]

    def page_runs(self, page_index: int) -> List[PositionedRun]:
        page = self.get_page(page_index)
        pd = page.get_text("dict")
        runs: List[PositionedRun] = []
        for blk in pd.get("blocks", []):
            for line in blk.get("lines", []):
                for sp in line.get("spans", []):
                    txt = sp.get("text", "")
                    if not txt:
                        continue
                    x, y = sp.get("origin", (0.0, 0.0))
                    runs.append(PositionedRun(text=txt, x=x, y=y))
        return runs

    def iter_pages(self) -> Iterator[Page]:
        for i in range(self.page_count()):
            yield Page(number=i + 1, runs=self.page_runs(i))


def pdf_to_text(pdf_path: str) -> str:
    """Reconstructed text layer of a PDF (may be empty for scanned documents)."""
    with PDFLoader(pdf_path) as loader:
        return reconstruct(loader.iter_pages())
