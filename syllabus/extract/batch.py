from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Tuple

from rich import print
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from syllabus.config import get_settings
from syllabus.extract.extractor import (
    REPORT_FORMATS,
    extract_for_document,
    write_json,
    write_text_report,
)


def iter_pdfs(root: Path, pattern: str = "*.pdf") -> Iterable[Path]:
    return sorted(root.glob(pattern))


def extract_directory(
    src_dir: Path,
    fields_yaml: Path,
    *,
    out_dir: Optional[Path] = None,
    pattern: str = "*.pdf",
    fmt: str = "txt",
    resume: bool = True,
    limit: Optional[int] = None,
    show_progress: bool = True,
) -> Tuple[int, int]:
    """
    Run extraction over every PDF in `src_dir`, one document at a time.
    Returns (processed, skipped). A failing document aborts the run.
    """
    if fmt not in REPORT_FORMATS:
        raise ValueError(f"unknown report format {fmt!r} (use one of {REPORT_FORMATS})")

    cfg = get_settings()
    out_dir = out_dir or cfg.output_dir_extract

    all_pdfs = list(iter_pdfs(src_dir, pattern))
    if limit is not None and limit >= 0:
        all_pdfs = all_pdfs[:limit]

    processed = 0
    skipped = 0

    def process(pdf: Path) -> None:
        nonlocal processed, skipped
        out_path = out_dir / f"{pdf.stem}.fields.{fmt}"
        if resume and out_path.exists():
            skipped += 1
            print(f"[yellow]skip[/yellow] already exists: {out_path.name}")
            return

        result = extract_for_document(pdf, fields_yaml)
        if fmt == "json":
            write_json(result, out_path)
        else:
            write_text_report(result, out_path, pdf_path=pdf)
        processed += 1
        tag = " [cyan](ocr)[/cyan]" if result.source == "ocr" else ""
        print(f"[green]✓[/green] {pdf.name} → {out_path.name}{tag}")

    if show_progress:
        with Progress(
            TextColumn("[bold]Extract[/bold]"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            transient=False,
        ) as progress:
            task = progress.add_task("docs", total=len(all_pdfs))
            for pdf in all_pdfs:
                process(pdf)
                progress.update(task, advance=1)
    else:
        for pdf in all_pdfs:
            process(pdf)

    return processed, skipped
