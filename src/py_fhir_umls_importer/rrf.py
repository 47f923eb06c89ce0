# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Decoders for UMLS Rich Release Format (RRF) files.

Every RRF file is pipe-delimited with a fixed number of columns and a trailing
pipe on each line. A decoder only checks arity and binds columns by position;
filtering on the decoded values is left to the pipeline stages.

Column references:
https://www.nlm.nih.gov/research/umls/knowledge_sources/metathesaurus/release/columns_data_elements.html
"""
import os
from pathlib import Path
from typing import Iterator, Optional, Type, Union

from pydantic import BaseModel
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from .models import (
    AttributeRecord,
    ConceptRecord,
    DocRecord,
    MalformedRow,
    RelationshipRecord,
)
from .reporting import console

# Update the progress bar every N lines; updating per line dominates the runtime on large files.
PROGRESS_INTERVAL = 10_000


class RRFSchema:
    """Binds the columns of one RRF file to a record model."""

    def __init__(self, name: str, model: Type[BaseModel]):
        self.name = name
        self.model = model
        self.fields = tuple(model.model_fields)
        self.columns = len(self.fields)

    def decode(self, line: str, line_number: int = 0) -> Union[BaseModel, MalformedRow]:
        values = line.rstrip("\r\n").split("|")
        # The trailing pipe on RRF lines produces one extra empty field
        if len(values) > self.columns and values[-1] == "":
            values.pop()
        if len(values) != self.columns:
            return MalformedRow(
                schema_name=self.name,
                line_number=line_number,
                field_count=len(values),
                expected=self.columns,
            )
        return self.model(**dict(zip(self.fields, values)))

    def __repr__(self) -> str:
        return f"RRFSchema({self.name!r}, columns={self.columns})"


MRCONSO = RRFSchema("MRCONSO.RRF", ConceptRecord)
MRSAT = RRFSchema("MRSAT.RRF", AttributeRecord)
MRREL = RRFSchema("MRREL.RRF", RelationshipRecord)
MRDOC = RRFSchema("MRDOC.RRF", DocRecord)


def stream_rrf(
    path: Path,
    schema: RRFSchema,
    description: Optional[str] = None,
) -> Iterator[Union[BaseModel, MalformedRow]]:
    """
    Lazily yields one decoded record (or MalformedRow) per non-blank line of `path`.
    Lines are only read as the consumer pulls, so memory does not grow with the file size.
    """
    path = Path(path)
    total = os.path.getsize(path)
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        "[progress.percentage]{task.percentage:>3.0f}%",
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(description or f"Reading {path.name}...", total=total)
        pending = 0
        with open(path, "rb") as f:
            for line_number, raw in enumerate(f, start=1):
                pending += len(raw)
                if line_number % PROGRESS_INTERVAL == 0:
                    progress.update(task, advance=pending)
                    pending = 0
                line = raw.decode("utf-8", errors="ignore")
                if not line.strip():
                    continue
                yield schema.decode(line, line_number)
        progress.update(task, advance=pending)


def warn_malformed(row: MalformedRow, log_console: Optional[Console] = None) -> None:
    (log_console or console).log(
        f"[yellow]Skipping malformed {row.schema_name} line {row.line_number}: "
        f"{row.field_count} fields, expected {row.expected}[/yellow]"
    )
