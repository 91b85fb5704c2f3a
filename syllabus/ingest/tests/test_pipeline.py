from pathlib import Path

import fitz  # PyMuPDF
import pytest

from syllabus.ingest import pipeline
from syllabus.ingest.pipeline import load_document_text
from syllabus.ingest.schema import Page, PositionedRun

# --- Tiny fakes to avoid real PDFs -------------------------------------------


class _FakeLoader:
    def __init__(self, pages):
        self._pages = pages
        self.closed = False

    def __call__(self, path):
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def page_count(self):
        return len(self._pages)

    def iter_pages(self):
        for i, runs in enumerate(self._pages):
            yield Page(number=i + 1, runs=runs)


def _fail_recognize(path):
    raise AssertionError("OCR must not run")


def test_text_layer_is_used_when_present(monkeypatch):
    loader = _FakeLoader([[PositionedRun(text="Grading Scale:", x=72, y=700)]])
    monkeypatch.setattr(pipeline, "PDFLoader", loader)

    doc = load_document_text(Path("doc.pdf"), recognize=_fail_recognize)

    assert doc.source == "text"
    assert doc.text == "Grading Scale:\n\n"
    assert doc.page_count == 1
    assert loader.closed


def test_empty_text_layer_falls_back_to_ocr(monkeypatch):
    monkeypatch.setattr(pipeline, "PDFLoader", _FakeLoader([[], []]))
    calls = []

    def rasterize(pdf_path, page):
        calls.append(("raster", page))
        return Path(f"/nonexistent/p{page}.png")

    def recognize(path):
        calls.append(("ocr", path.name))
        return f"OCR {path.stem}"

    doc = load_document_text(Path("scan.pdf"), rasterize=rasterize, recognize=recognize)

    assert doc.source == "ocr"
    assert doc.text == "OCR p1\nOCR p2\n"
    assert doc.page_count == 2
    assert calls == [("raster", 1), ("ocr", "p1.png"), ("raster", 2), ("ocr", "p2.png")]


def test_raw_pdf_bytes_trigger_ocr(monkeypatch):
    runs = [PositionedRun(text="%PDF-1.5", x=0, y=0)]
    monkeypatch.setattr(pipeline, "PDFLoader", _FakeLoader([runs]))

    doc = load_document_text(
        Path("weird.pdf"),
        rasterize=lambda p, n: Path("/nonexistent/x.png"),
        recognize=lambda p: "Office Hours: Mon 1-2pm",
    )
    assert doc.source == "ocr"
    assert doc.text.startswith("Office Hours")


def test_decoder_failure_propagates_unmodified(monkeypatch):
    class Boom(RuntimeError):
        pass

    def broken_loader(path):
        raise Boom("cannot open broken document")

    monkeypatch.setattr(pipeline, "PDFLoader", broken_loader)
    with pytest.raises(Boom):
        load_document_text(Path("corrupt.pdf"), recognize=_fail_recognize)


def test_real_pdf_round_trip(tmp_path):
    path = tmp_path / "syllabus.pdf"
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 100), "Instructor: prof@example.edu")
    doc.save(str(path))
    doc.close()

    out = load_document_text(path, recognize=_fail_recognize)
    assert out.source == "text"
    assert "prof@example.edu" in out.text
