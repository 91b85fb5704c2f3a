from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from rich import print

from syllabus.ingest.layout import PDFLoader, reconstruct
from syllabus.ingest.ocr import Rasterizer, Recognizer, needs_ocr, ocr_document

TextSource = Literal["text", "ocr"]


@dataclass(frozen=True)
class DocumentText:
    text: str
    source: TextSource
    page_count: int


def load_document_text(
    pdf_path: Path,
    *,
    rasterize: Optional[Rasterizer] = None,
    recognize: Optional[Recognizer] = None,
    verbose: bool = False,
) -> DocumentText:
    """
    Reconstruct the text layer; fall back to OCR when it is empty or raw PDF bytes.
    Decoder and OCR errors propagate; there is no partial result.
    """
    pdf_path = Path(pdf_path)
    with PDFLoader(str(pdf_path)) as loader:
        page_count = loader.page_count()
        text = reconstruct(loader.iter_pages())

    if not needs_ocr(text):
        return DocumentText(text=text, source="text", page_count=page_count)

    if verbose:
        print(f"[yellow]ocr[/yellow] no text layer in {pdf_path.name}, falling back to OCR")
    ocr_text = ocr_document(
        pdf_path,
        page_count,
        rasterize=rasterize,
        recognize=recognize,
        verbose=verbose,
    )
    return DocumentText(text=ocr_text, source="ocr", page_count=page_count)
