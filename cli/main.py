#!/usr/bin/env python3
"""papergen CLI: draft an IEEE paper with AI and export it as a LaTeX project."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from papergen.assembler import generate_latex
from papergen.config import load_paper, save_paper, validate_venue
from papergen.drafting import (
    MARKER_KINDS,
    add_references,
    draft_all_sections,
    draft_section,
    fill_all_fields,
    find_references,
    insert_marker,
    recommend_field,
    refine_all_sections,
    refine_section,
)
from papergen.errors import PapergenError
from papergen.images import resolve_images
from papergen.models import INFO_FIELDS, SECTION_KEYS, SECTION_TITLES, PaperData
from papergen.packaging import FINAL_CHECKLIST, load_generated, write_project, write_zip

__version__ = "0.1.0"

DEFAULT_PAPER = Path("paper.yml")


def version_callback(value: bool):
    if value:
        print(f"papergen {__version__}")
        raise typer.Exit()


app = typer.Typer(
    help="Draft an IEEE research paper with AI and export a LaTeX project.",
    epilog="Run 'papergen COMMAND --help' for more info on a command.",
)
console = Console()

PaperOption = typer.Option(DEFAULT_PAPER, "--paper", "-p", help="Paper YAML file")


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True, help="Show version and exit"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """papergen CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(paper_path: Path) -> PaperData:
    try:
        return load_paper(paper_path)
    except PapergenError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)


def _fail(exc: Exception, paper: Optional[PaperData] = None, paper_path: Optional[Path] = None):
    """Report *exc*, keep whatever progress was made, and exit 1."""
    if paper is not None and paper_path is not None:
        save_paper(paper, paper_path)
    console.print(f"[red]Error: {exc}[/red]")
    raise typer.Exit(1)


def _progress(message: str) -> None:
    console.print(f"[cyan]{message}[/cyan]")


def _check_section(section: str) -> None:
    if section not in SECTION_KEYS:
        console.print(f"[red]Unknown section: {section}[/red]")
        console.print(f"Valid sections: {', '.join(SECTION_KEYS)}")
        raise typer.Exit(1)


@app.command()
def new(
    path: Path = typer.Argument(DEFAULT_PAPER, help="Where to write the paper file"),
    venue: str = typer.Option("conference", help="conference or journal"),
):
    """Create an empty paper file."""
    if path.exists():
        console.print(f"[red]Error: {path} already exists[/red]")
        raise typer.Exit(1)
    paper = PaperData()
    try:
        paper.venue_type = validate_venue(venue)
    except PapergenError as exc:
        _fail(exc)
    save_paper(paper, path)
    console.print(f"[green]Paper file created at {path}[/green]")


@app.command()
def recommend(
    field: str = typer.Argument(..., help=f"One of: {', '.join(INFO_FIELDS)}"),
    paper: Path = PaperOption,
    topic: str = typer.Option("", "--topic", "-t", help="Research topic"),
):
    """Ask the AI to suggest one research-info field."""
    if field not in INFO_FIELDS:
        console.print(f"[red]Unknown field: {field}[/red]")
        raise typer.Exit(1)
    data = _load(paper)
    console.print(f"[bold]Generating {field.replace('_', ' ')}...[/bold]")
    try:
        value = recommend_field(field, data, topic)
    except PapergenError as exc:
        _fail(exc)
    save_paper(data, paper)
    console.print(value)


@app.command("fill-info")
def fill_info(
    paper: Path = PaperOption,
    topic: str = typer.Option("", "--topic", "-t", help="Research topic"),
):
    """Fill every research-info field with AI suggestions."""
    data = _load(paper)
    try:
        filled = fill_all_fields(data, topic, on_progress=_progress)
    except PapergenError as exc:
        _fail(exc, data, paper)
    save_paper(data, paper)
    console.print(f"[green]Filled {len(filled)} field(s).[/green]")


@app.command("find-refs")
def find_refs(
    topic: str = typer.Argument(..., help="Research topic to search"),
    paper: Path = PaperOption,
    add: bool = typer.Option(False, "--add", help="Append all found entries to the references"),
):
    """Search for relevant papers and optionally add them as references."""
    console.print("[bold]Searching for papers...[/bold]")
    try:
        papers = find_references(topic)
    except PapergenError as exc:
        _fail(exc)

    if not papers:
        console.print("[yellow]No papers found.[/yellow]")
        return
    for i, found in enumerate(papers, start=1):
        authors = ", ".join(found.authors)
        console.print(f"[bold]{i}. {found.title}[/bold] ({found.year})")
        console.print(f"   {authors}")
        console.print(f"   [dim]{found.summary}[/dim]")

    if add:
        data = _load(paper)
        add_references(data, [p.bibtex for p in papers])
        save_paper(data, paper)
        console.print(f"[green]Added {len(papers)} reference(s) to {paper}[/green]")


@app.command()
def draft(
    section: str = typer.Argument(None, help="Section to draft (default: all empty sections)"),
    paper: Path = PaperOption,
):
    """Draft one section, or every section that is still empty."""
    data = _load(paper)
    try:
        if section:
            _check_section(section)
            _progress(f"Drafting {SECTION_TITLES[section]}...")
            draft_section(section, data)
            done = [section]
        else:
            done = draft_all_sections(data, on_progress=_progress)
    except PapergenError as exc:
        _fail(exc, data, paper)
    save_paper(data, paper)
    console.print(f"[green]Drafted {len(done)} section(s).[/green]")


@app.command()
def refine(
    section: str = typer.Argument(None, help="Section to refine (default: all drafted sections)"),
    paper: Path = PaperOption,
):
    """Refine one drafted section, or all of them."""
    data = _load(paper)
    try:
        if section:
            _check_section(section)
            _progress(f"Refining {SECTION_TITLES[section]}...")
            done = [section] if refine_section(section, data) is not None else []
        else:
            done = refine_all_sections(data, on_progress=_progress)
    except PapergenError as exc:
        _fail(exc, data, paper)
    save_paper(data, paper)
    console.print(f"[green]Refined {len(done)} section(s).[/green]")


@app.command()
def marker(
    section: str = typer.Argument(..., help="Section to append the marker to"),
    kind: str = typer.Argument(..., help="figure or table"),
    paper: Path = PaperOption,
):
    """Append a template figure/table marker to a section draft."""
    _check_section(section)
    if kind not in MARKER_KINDS:
        console.print(f"[red]Unknown marker kind: {kind}[/red]")
        raise typer.Exit(1)
    data = _load(paper)
    insert_marker(data, section, kind)
    save_paper(data, paper)
    console.print(f"[green]Added {kind} marker to {SECTION_TITLES[section]}.[/green]")


@app.command()
def build(
    paper: Path = PaperOption,
    out: Path = typer.Option(Path("paper-project"), "--out", "-o", help="Output directory; AI images from an earlier build there are reused"),
    images: bool = typer.Option(False, "--images/--no-images", help="Generate figures with AI"),
    zip_output: bool = typer.Option(False, "--zip", help="Write a zip archive instead of a directory"),
):
    """Assemble the LaTeX project (paper.tex, README.md, images/)."""
    data = _load(paper)
    document = generate_latex(data)
    console.print(f"[bold]LaTeX assembled with {len(document.images)} figure(s).[/bold]")

    try:
        generated = load_generated(out, document.images)
    except PapergenError as exc:
        _fail(exc)
    if generated:
        console.print(f"Reusing {len(generated)} previously generated image(s).")

    if images and document.images:
        result = resolve_images(document.images, existing=generated, on_progress=_progress)
        generated = result.generated
        if result.partial_failure:
            console.print(
                "[yellow]Some images could not be generated: "
                f"{', '.join(result.failed)}. Placeholders will be used.[/yellow]"
            )

    if zip_output:
        target = write_zip(document, out.parent / f"{out.name}.zip", generated)
    else:
        write_project(document, out, generated)
        target = out
    console.print(f"\n[green]Project written to {target}[/green]")


@app.command()
def checklist():
    """Show the final quality and integrity checklist."""
    console.print("[bold]Before submitting, check that you have:[/bold]\n")
    for item in FINAL_CHECKLIST:
        console.print(f"  [green]✓[/green] {item}")
    console.print(
        "\n[bold yellow]Your paper is NOT ready to submit without a thorough human review.[/bold yellow]"
    )


if __name__ == "__main__":
    app()
