"""Document verification CLI."""

import json
import mimetypes
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from docverify import service
from docverify.config import settings
from docverify.errors import DocVerifyError, InvalidUpload
from docverify.logging_setup import configure_logging
from docverify.models import AnalysisContext, OCRMode, SourceDocument
from docverify.rules import load_rules, resolve_rules_dir

app = typer.Typer(
    name="docverify",
    help="OCR fallback and rule-based verification for uploaded documents",
    add_completion=False,
)
console = Console()


def load_document(path: Path) -> SourceDocument:
    """Read a file from disk into a SourceDocument."""
    if not path.is_file():
        raise InvalidUpload(f"File not found: {path}")
    mime_type, _ = mimetypes.guess_type(path.name)
    return SourceDocument(
        content=path.read_bytes(),
        mime_type=mime_type or "application/octet-stream",
        filename=path.name,
    )


def _print_result(payload: dict[str, Any]) -> None:
    console.print_json(json.dumps(payload, ensure_ascii=False, default=str))
    if not payload.get("ok", True):
        raise typer.Exit(code=1)


def _load_all(paths: list[Path]) -> list[SourceDocument]:
    try:
        return [load_document(p) for p in paths]
    except DocVerifyError as e:
        _print_result(e.to_dict())
        return []


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, help="Logging level"),
) -> None:
    configure_logging(log_level)


@app.command()
def extract(
    files: list[Path] = typer.Argument(..., help="One PDF or several images"),
    handwriting: bool = typer.Option(False, help="Use handwriting preprocessing and tiling"),
) -> None:
    """Extract text, falling back to vision OCR."""
    documents = _load_all(files)
    mode = OCRMode.HANDWRITING if handwriting else OCRMode.PRINTED
    console.print(f"[bold blue]Extracting:[/bold blue] {', '.join(f.name for f in files)}")

    try:
        service.validate_uploads(documents)
        pipeline = service.TextExtractionPipeline(service.default_service())
        extracted = pipeline.extract(documents, mode)
    except DocVerifyError as e:
        _print_result(e.to_dict())
        return

    console.print(extracted.text)
    console.print(
        f"[dim]source={extracted.provenance.source.value} "
        f"chars={extracted.char_count} batches={extracted.provenance.batches_sent}[/dim]"
    )


@app.command()
def preview(
    file: Path = typer.Argument(..., help="PDF or image to preview"),
    handwriting: bool = typer.Option(False, help="Use handwriting preprocessing and tiling"),
) -> None:
    """Show an excerpt of the extracted text."""
    documents = _load_all([file])
    mode = OCRMode.HANDWRITING if handwriting else OCRMode.PRINTED
    _print_result(service.preview_text(documents, mode))


@app.command()
def verify(
    files: list[Path] = typer.Argument(..., help="One PDF or several images"),
    doc_type: str = typer.Option(..., "--doc-type", help="Document type key, e.g. oplata_skarbowa"),
    path: str = typer.Option("", help="Application path, e.g. work or study"),
    citizenship: str = typer.Option("", help="Applicant citizenship"),
    application_date: str = typer.Option("", help="Application date (YYYY-MM-DD)"),
    user_name: str = typer.Option("", help="Applicant name"),
    handwriting: bool = typer.Option(False, help="Use handwriting preprocessing and tiling"),
    debug: bool = typer.Option(False, help="Include extraction diagnostics"),
    debug_full: bool = typer.Option(False, help="Also include the start of the OCR text"),
) -> None:
    """Verify documents against the rules for a document type."""
    documents = _load_all(files)
    console.print(f"[bold blue]Verifying:[/bold blue] {doc_type}")
    context = AnalysisContext(
        citizenship=citizenship,
        path=path,
        application_date=application_date,
        user_name=user_name,
    )
    _print_result(
        service.verify_documents(
            documents,
            doc_type,
            context,
            mode=OCRMode.HANDWRITING if handwriting else OCRMode.PRINTED,
            debug=debug or debug_full,
            debug_full=debug_full,
        )
    )


@app.command()
def translate(
    file: Optional[Path] = typer.Argument(None, help="Image or PDF to translate"),
    text: str = typer.Option("", help="Plain text to translate"),
    source: str = typer.Option("auto", help="Source language"),
    target: str = typer.Option("ru", help="Target language"),
) -> None:
    """Translate a document and/or text."""
    document = _load_all([file])[0] if file else None
    _print_result(service.translate(document, text=text, source=source, target=target))


@app.command()
def status() -> None:
    """Show configuration and rule set status."""
    console.print("[bold blue]Document Verification Status[/bold blue]")
    console.print()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("API key", "[green]set[/green]" if settings.has_api_key else "[red]missing[/red]")
    table.add_row("Recognition model", settings.recognition_model)
    table.add_row("Analysis model", settings.analysis_model)
    table.add_row("Rules directory", str(resolve_rules_dir()))
    try:
        rules = load_rules()
        table.add_row("Document types", ", ".join(sorted(rules.doc_types)))
        table.add_row("Fee items", str(len(rules.fees.items)))
    except DocVerifyError as e:
        table.add_row("Rules", f"[red]{e.message}[/red]")
    console.print(table)


if __name__ == "__main__":
    app()
