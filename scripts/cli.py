from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich import print

# If not installed in editable mode, add repo root to PYTHONPATH
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from syllabus.config import get_settings
from syllabus.extract.batch import extract_directory
from syllabus.extract.extractor import (
    REPORT_FORMATS,
    extract_fields,
    format_text_report,
    load_fields,
    write_json,
    write_text_report,
)
from syllabus.ingest.pipeline import load_document_text

app = typer.Typer(add_completion=False, help="Syllabus text & field extraction")


def _require_pdf(pdf: Path) -> Path:
    if not pdf.is_file():
        typer.secho(f"File not found: {pdf}", fg="red")
        raise typer.Exit(1)
    return pdf


def _require_format(fmt: str) -> str:
    if fmt not in REPORT_FORMATS:
        typer.secho(f"Unknown format: {fmt} (use txt or json)", fg="red")
        raise typer.Exit(1)
    return fmt


@app.command()
def text(
    pdf: Path = typer.Argument(..., help="PDF path"),
    out: Path = typer.Option(
        None, "--out", help="Write the text here instead of printing it"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """
    Dump the linearized text of a PDF (text layer, or OCR if there is none).
    """
    doc = load_document_text(_require_pdf(pdf), verbose=verbose)
    if out is None:
        typer.echo(doc.text)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(doc.text, encoding="utf-8")
    print(f"[green]✓[/green] {pdf.name} → {out} ({doc.source}, {doc.page_count} pages)")


@app.command()
def extract(
    pdf: Path = typer.Argument(..., help="PDF path"),
    fields: Path = typer.Option(
        None, help="Field table YAML (defaults to SYLLABUS_FIELDS / built-in table)"
    ),
    out: Path = typer.Option(
        None, help="Output file (defaults to <pdf>.txt next to the PDF)"
    ),
    fmt: str = typer.Option("txt", "--format", help="txt | json"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """
    Extract office hours, grading and late-policy fields from one syllabus.
    """
    cfg = get_settings()
    _require_pdf(pdf)
    _require_format(fmt)

    field_table = load_fields(fields or cfg.fields_yaml)
    doc = load_document_text(pdf, verbose=verbose)
    result = extract_fields(doc.text, field_table, doc_id=pdf.stem, source=doc.source)

    if out is None:
        out = pdf.with_suffix(f".{fmt}")
    if fmt == "json":
        write_json(result, out)
    else:
        write_text_report(result, out, pdf_path=pdf)
    if verbose:
        print(format_text_report(result, pdf))
    print(f"[green]✓[/green] wrote {out}")


@app.command("extract-dir")
def extract_dir(
    src: Path = typer.Argument(
        None, help="Directory of PDFs; defaults to SYLLABUS_DATA or repo default"
    ),
    outdir: Path = typer.Option(
        None, "--outdir", help="Output dir; defaults to <SYLLABUS_OUTPUT>/extract"
    ),
    fields: Path = typer.Option(None, help="Field table YAML"),
    fmt: str = typer.Option("txt", "--format", help="txt | json"),
    no_resume: bool = typer.Option(
        False, "--no-resume", help="Re-extract documents that already have output"
    ),
    limit: int = typer.Option(None, help="Only process the first N PDFs"),
):
    """
    Extract fields for every PDF in a directory.
    Precedence: CLI args > env (SYLLABUS_DATA/SYLLABUS_OUTPUT) > repo defaults.
    """
    _require_format(fmt)
    cfg = get_settings()
    effective_src = src or cfg.data_dir
    if not effective_src.is_dir():
        typer.secho(f"No such directory: {effective_src}", fg="red")
        raise typer.Exit(1)
    if not any(effective_src.glob("*.pdf")):
        typer.secho(f"No PDFs found in {effective_src}", fg="red")
        raise typer.Exit(1)

    processed, skipped = extract_directory(
        effective_src,
        fields or cfg.fields_yaml,
        out_dir=outdir,
        fmt=fmt,
        resume=not no_resume,
        limit=limit,
    )
    print(f"[green]OK[/green] processed={processed} skipped={skipped}")


@app.command("fields")
def show_fields(
    path: Path = typer.Argument(None, help="Field table YAML; defaults to built-in"),
):
    """Validate a field table and list its fields."""
    cfg = get_settings()
    table = load_fields(path or cfg.fields_yaml)
    for f in table:
        kinds = ", ".join(s.kind for s in f.strategies)
        print(f"[green]OK[/green] {f.id} ({f.label}): {kinds}")


if __name__ == "__main__":
    app()
