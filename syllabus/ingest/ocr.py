"""
OCR fallback for PDFs without a usable text layer.

Each page is rasterized to a temporary PNG with PyMuPDF, recognized with
Tesseract and the image is deleted again before the next page starts.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

import fitz  # PyMuPDF
import pytesseract
from PIL import Image
from rich import print

from syllabus.config import get_settings

PDF_SIGNATURE = "%PDF"

Rasterizer = Callable[[Path, int], Path]
Recognizer = Callable[[Path], str]


class OcrError(RuntimeError):
    """Rasterization or recognition failed for a page."""

    def __init__(self, pdf_path: Path, page: int, reason: str):
        super().__init__(f"OCR failed on page {page} of {pdf_path}: {reason}")
        self.pdf_path = pdf_path
        self.page = page


def needs_ocr(text: str) -> bool:
    """
    True if the extracted text is empty or is raw PDF container bytes,
    i.e. the document has no text layer worth reading.
    """
    t = (text or "").strip()
    return not t or t.startswith(PDF_SIGNATURE)


class PageRasterizer:
    """
    Renders pages of one PDF to temporary PNGs. The document is opened once
    and stays open until `close()`.
    """

    def __init__(self, pdf_path: Path, dpi: Optional[int] = None, tmp_dir: Optional[Path] = None):
        cfg = get_settings()
        self.pdf_path = Path(pdf_path)
        self.dpi = dpi or cfg.ocr_dpi
        self.tmp_dir = tmp_dir if tmp_dir is not None else cfg.tmp_dir
        self.doc = fitz.open(str(self.pdf_path))

    def close(self) -> None:
        self.doc.close()

    def __enter__(self) -> "PageRasterizer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __call__(self, pdf_path: Path, page: int) -> Path:
        """Render 1-based `page` to a PNG in the temp dir and return its path."""
        if self.tmp_dir is not None:
            self.tmp_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix=f"{self.pdf_path.stem}.p{page}.", suffix=".png", dir=self.tmp_dir
        )
        os.close(fd)
        out = Path(name)
        try:
            pix = self.doc.load_page(page - 1).get_pixmap(dpi=self.dpi)
            pix.save(str(out))
        except Exception:
            out.unlink(missing_ok=True)
            raise
        return out


def recognize_image(image_path: Path) -> str:
    cfg = get_settings()
    if cfg.tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = cfg.tesseract_cmd
    with Image.open(image_path) as img:
        return pytesseract.image_to_string(img, lang=cfg.ocr_lang)


@contextmanager
def page_image(
    rasterize: Rasterizer, pdf_path: Path, page: int
) -> Iterator[Path]:
    """Scoped page image: deleted on exit, whether recognition worked or not."""
    try:
        path = Path(rasterize(pdf_path, page))
    except (RuntimeError, ValueError, OSError) as e:
        raise OcrError(pdf_path, page, f"rasterize: {e}") from e
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)


def ocr_document(
    pdf_path: Path,
    page_count: int,
    *,
    rasterize: Optional[Rasterizer] = None,
    recognize: Optional[Recognizer] = None,
    verbose: bool = False,
) -> str:
    """
    OCR every page in ascending order and join the page texts with newlines.
    Any page failure aborts the whole document with OcrError.
    """
    if page_count < 1:
        return ""
    recognize = recognize or recognize_image
    if rasterize is None:
        try:
            raster = PageRasterizer(pdf_path)
        except (RuntimeError, ValueError, OSError) as e:
            raise OcrError(pdf_path, 1, f"open: {e}") from e
        with raster:
            return ocr_document(
                pdf_path, page_count, rasterize=raster, recognize=recognize, verbose=verbose
            )

    out = []
    for page in range(1, page_count + 1):
        with page_image(rasterize, pdf_path, page) as img_path:
            try:
                text = recognize(img_path)
            except (pytesseract.TesseractError, RuntimeError, OSError) as e:
                raise OcrError(pdf_path, page, f"recognize: {e}") from e
        if verbose:
            print(f"[cyan]ocr[/cyan] page {page}/{page_count} ({len(text)} chars)")
        out.append(text + "\n")
    return "".join(out)
