"""
pdfbake CLI - bake annotation overlays into PDF documents.

Usage:
    pdfbake apply --pdf input.pdf --annotations annotations.json --delete 2 --out output.pdf
    pdfbake check --annotations annotations.json
"""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from pdfbake.annotation_types import Rejected, validate_annotation
from pdfbake.config import EngineConfig
from pdfbake.engine import MutationEngine
from pdfbake.errors import BakeError

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(add_completion=False)
console = Console()


def _load_annotations(path: str) -> list[Any]:
    """Read a JSON list of records, or an object carrying an `annotations` list."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"annotations file is not valid JSON: {e}", param_hint="--annotations") from e
    if isinstance(data, dict):
        data = data.get("annotations")
    if not isinstance(data, list):
        raise typer.BadParameter(
            "annotations file must hold a JSON list or an object with an 'annotations' list",
            param_hint="--annotations",
        )
    return data


def _default_output(pdf: str) -> str:
    p = Path(pdf)
    return str(p.with_name(f"edited_{p.name}"))


def _make_logger(log_file: str | None, verbose: bool):
    def log(msg: str) -> None:
        ts = time.strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{ts}] {msg}"
        if log_file:
            with open(log_file, "a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        if verbose:
            console.print(line)

    return log


class TimedContext:
    """Context manager for timing operations."""

    def __init__(self, label: str, log):
        self.label = label
        self.log = log
        self.t0 = 0.0

    def __enter__(self):
        self.t0 = time.time()
        self.log(f"START {self.label}")
        return self

    def __exit__(self, exc_type, exc, tb):
        dt = time.time() - self.t0
        if exc:
            self.log(f"FAIL  {self.label} ({dt:.2f}s): {exc}")
        else:
            self.log(f"DONE  {self.label} ({dt:.2f}s)")
        return False


@app.command("apply")
def apply_cmd(
    pdf: str = typer.Option(..., "--pdf", help="Path to input PDF"),
    annotations: str = typer.Option(..., "--annotations", help="JSON file with the annotation list"),
    out: str | None = typer.Option(None, "--out", help="Output PDF (default: edited_<input name>)"),
    delete: list[int] | None = typer.Option(None, "--delete", help="Zero-based page index to remove (repeatable)"),
    report: str | None = typer.Option(None, "--report", help="Write a JSON outcome report here"),
    log_file: str | None = typer.Option(None, "--log-file", help="Append log lines to this file"),
    font: str = typer.Option("", "--font", help="Standard PDF font for text (default: $PDFBAKE_FONT or Helvetica)"),
    verbose: bool = typer.Option(True, "--verbose/--quiet"),
):
    """Bake annotations into a PDF and optionally remove pages."""
    pdf = os.path.abspath(pdf)
    out = os.path.abspath(out or _default_output(pdf))
    log = _make_logger(log_file, verbose)

    log("pdfbake apply started")
    log(f"pdf={pdf}")
    log(f"out={out}")

    records = _load_annotations(annotations)
    deletions = delete or []
    log(f"annotations={len(records)} deletions={sorted(deletions)}")

    engine = MutationEngine(config=EngineConfig(font_name=font), log_fn=log)
    source = Path(pdf).read_bytes()
    try:
        with TimedContext("bake", log):
            result = engine.apply(source, records, deletions)
    except BakeError as e:
        console.print(f"[red]ERROR[/red] {e}")
        raise typer.Exit(code=1)

    Path(out).parent.mkdir(parents=True, exist_ok=True)
    Path(out).write_bytes(result.data)
    log(f"Wrote {out} ({result.page_count} pages)")

    if report:
        Path(report).write_text(json.dumps(result.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        log(f"Wrote {report}")

    log("pdfbake apply finished")


@app.command("check")
def check_cmd(
    annotations: str = typer.Option(..., "--annotations", help="JSON file with the annotation list"),
):
    """Validate annotation records without touching any document."""
    records = _load_annotations(annotations)

    table = Table(title=f"{len(records)} annotation records")
    table.add_column("#", justify="right")
    table.add_column("id")
    table.add_column("type")
    table.add_column("page", justify="right")
    table.add_column("status")
    table.add_column("reason")

    n_rejected = 0
    for i, record in enumerate(records):
        ann = validate_annotation(record)
        if isinstance(ann, Rejected):
            n_rejected += 1
            page = record.get("page") if isinstance(record, dict) else None
            table.add_row(
                str(i), str(ann.annotation_id), str(ann.kind), str(page), "[red]rejected[/red]", ann.reason
            )
        else:
            table.add_row(str(i), ann.id, ann.type, str(ann.page), "[green]ok[/green]", "")

    console.print(table)
    console.print(f"accepted={len(records) - n_rejected} rejected={n_rejected}")


def main():
    """Entry point for the pdfbake CLI."""
    app()
