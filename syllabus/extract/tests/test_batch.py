from pathlib import Path

import pytest

from syllabus.extract import batch
from syllabus.extract.batch import extract_directory
from syllabus.extract.schema import ExtractionResult, FieldResult


def _result(pdf: Path, source="text"):
    return ExtractionResult(
        doc_id=pdf.stem,
        source=source,
        fields=[
            FieldResult(
                field_id="office_hours",
                label="Office Hours",
                status="ok",
                value="Mon 1pm",
            )
        ],
    )


@pytest.fixture
def pdf_dir(tmp_path):
    src = tmp_path / "pdfs"
    src.mkdir()
    for name in ("b.pdf", "a.pdf", "notes.txt"):
        (src / name).write_bytes(b"%PDF-1.4")
    return src


def test_extract_directory_writes_reports_in_sorted_order(monkeypatch, pdf_dir, tmp_path):
    seen = []

    def fake_extract(pdf, fields_yaml):
        seen.append(pdf.name)
        return _result(pdf)

    monkeypatch.setattr(batch, "extract_for_document", fake_extract)
    out = tmp_path / "out"

    processed, skipped = extract_directory(
        pdf_dir, Path("fields.yaml"), out_dir=out, show_progress=False
    )

    assert (processed, skipped) == (2, 0)
    assert seen == ["a.pdf", "b.pdf"]
    report = (out / "a.fields.txt").read_text(encoding="utf-8")
    assert "Office Hours:\nMon 1pm" in report


def test_extract_directory_resume_skips_existing(monkeypatch, pdf_dir, tmp_path):
    monkeypatch.setattr(batch, "extract_for_document", lambda pdf, f: _result(pdf, "ocr"))
    out = tmp_path / "out"
    out.mkdir()
    (out / "a.fields.json").write_text("{}", encoding="utf-8")

    processed, skipped = extract_directory(
        pdf_dir, Path("fields.yaml"), out_dir=out, fmt="json", show_progress=False
    )

    assert (processed, skipped) == (1, 1)
    assert (out / "a.fields.json").read_text(encoding="utf-8") == "{}"
    assert '"source": "ocr"' in (out / "b.fields.json").read_text(encoding="utf-8")


def test_failing_document_aborts_the_run(monkeypatch, pdf_dir, tmp_path):
    def broken(pdf, fields_yaml):
        raise RuntimeError("cannot open broken document")

    monkeypatch.setattr(batch, "extract_for_document", broken)
    with pytest.raises(RuntimeError):
        extract_directory(pdf_dir, Path("fields.yaml"), out_dir=tmp_path, show_progress=False)


def test_unknown_format_is_rejected_before_any_work(monkeypatch, pdf_dir, tmp_path):
    def never(pdf, fields_yaml):
        raise AssertionError("should not extract")

    monkeypatch.setattr(batch, "extract_for_document", never)
    out = tmp_path / "out"
    with pytest.raises(ValueError):
        extract_directory(pdf_dir, Path("fields.yaml"), out_dir=out, fmt="xml", show_progress=False)
    assert not out.exists()
