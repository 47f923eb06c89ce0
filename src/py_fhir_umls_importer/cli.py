# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .pipeline import ImportPipeline
from .sources import build_registry

app = typer.Typer(
    name="py-fhir-umls-importer",
    help="Imports UMLS Metathesaurus vocabularies into a FHIR terminology server."
)
console = Console()


def _load_settings(**overrides):
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(Panel(
            f"[bold red]Configuration Error:[/bold red]\n{escape(str(e))}\n\nCheck your .env file and the [bold cyan]PYFHIRUMLS_*[/bold cyan] environment variables.",
            title="[bold red]Initialization Failed[/bold red]",
            border_style="red"
        ))
        raise typer.Exit(code=1)
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return settings
    try:
        return settings.model_validate({**settings.model_dump(), **updates})
    except ValidationError as e:
        console.print(Panel(f"[bold red]Invalid option:[/bold red]\n{escape(str(e))}", title="[bold red]Error[/bold red]"))
        raise typer.Exit(code=1)


@app.command(name="import", help="Import concepts, properties and relationships from a UMLS META directory.")
def import_release(
    meta_dir: Optional[Path] = typer.Option(
        None, "--meta-dir", "-m",
        help="Directory containing MRCONSO.RRF, MRSAT.RRF, MRREL.RRF and MRDOC.RRF."
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Base URL of the FHIR server."),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Entries per $import request."),
    sources: Optional[List[str]] = typer.Option(
        None, "--source", "-s",
        help="Source vocabulary (SAB) to import. Repeat for several; defaults to all registered sources."
    ),
    skip_properties: bool = typer.Option(False, "--skip-properties", help="Do not import MRSAT.RRF attributes."),
    skip_relationships: bool = typer.Option(False, "--skip-relationships", help="Do not import MRREL.RRF relationships."),
):
    """
    Runs the import passes in order: concepts, properties, relationships.
    Batches already sent stay applied if a later batch fails; rerunning is safe
    because $import upserts by code.
    """
    settings = _load_settings(
        meta_dir=str(meta_dir) if meta_dir else None,
        fhir_base_url=base_url,
        batch_size=batch_size,
        sources=sources or None,
    )
    console.print(Panel(
        f"[bold cyan]Importing UMLS from {settings.meta_dir} into {settings.fhir_base_url}[/bold cyan]",
        border_style="cyan"
    ))

    try:
        pipeline = ImportPipeline.from_settings(settings)
        pipeline.run(
            include_properties=not skip_properties,
            include_relationships=not skip_relationships,
        )
    except Exception as e:
        console.print_exception()
        console.print(Panel(f"[bold red]An error occurred during the import: {escape(str(e))}", title="[bold red]Error[/bold red]"))
        raise typer.Exit(code=1)

    console.print(Panel("[bold green]Import completed successfully![/bold green]", title="[bold green]Done[/bold green]"))


@app.command(name="sources", help="List the source vocabularies known to the importer.")
def list_sources():
    table = Table(title="UMLS source vocabularies")
    table.add_column("SAB", style="cyan")
    table.add_column("CodeSystem")
    table.add_column("Term types (most preferred first)")
    table.add_column("Properties", justify="right")
    for source in build_registry():
        table.add_row(
            source.source_id,
            source.system,
            ", ".join(source.accepted_term_types),
            str(len(source.properties)),
        )
    console.print(table)


if __name__ == "__main__":
    app()
