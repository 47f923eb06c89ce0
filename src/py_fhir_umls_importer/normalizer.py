# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
The concept pass over MRCONSO.RRF.

Each accepted atom is indexed by AUI for the relationship pass, and the atom
with the most preferred term type for each (SAB, CODE) becomes the display
sent for that code. Batches are sent while streaming, so a code may be sent
first with a less preferred display and again later with the preferred one;
the destination's $import upserts by code, so the last write wins.
"""
from typing import Dict, Iterable, Optional, Tuple, Union

from .batching import BatchEmitter
from .models import NOT_SUPPRESSED, CodingAssertion, ConceptRecord, MalformedRow
from .reporting import RunReport, console
from .rrf import warn_malformed
from .sources import SourceRegistry


class AtomIndexCapacityError(RuntimeError):
    """Raised when more atoms are accepted than the configured index bound allows."""


class AtomIndex:
    """
    Atoms retained by the concept pass.

    Every accepted atom is kept as AUI -> CODE, which is all the relationship
    pass reads. Full records are only kept for the currently preferred atom per
    (SAB, CODE). Size grows with the number of accepted atoms and can be capped
    with `max_atoms`. After `freeze()` the index is read-only.
    """

    def __init__(self, max_atoms: Optional[int] = None):
        self.max_atoms = max_atoms
        self._codes: Dict[str, str] = {}
        self._winners: Dict[Tuple[str, str], ConceptRecord] = {}
        self._frozen = False

    def add_atom(self, record: ConceptRecord) -> None:
        self._check_writable()
        if (
            self.max_atoms is not None
            and record.aui not in self._codes
            and len(self._codes) >= self.max_atoms
        ):
            raise AtomIndexCapacityError(
                f"Atom index is full ({self.max_atoms:,} atoms); raise max_indexed_atoms or import fewer sources."
            )
        self._codes[record.aui] = record.code

    def set_winner(self, record: ConceptRecord) -> None:
        self._check_writable()
        self._winners[(record.sab, record.code)] = record

    def winner(self, sab: str, code: str) -> Optional[ConceptRecord]:
        return self._winners.get((sab, code))

    def code_for(self, aui: str) -> Optional[str]:
        return self._codes.get(aui)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._codes)

    @property
    def code_count(self) -> int:
        return len(self._winners)

    def _check_writable(self) -> None:
        if self._frozen:
            raise RuntimeError("AtomIndex is frozen; it can only be written during the concept pass.")


class ConceptNormalizer:
    """Selects one display per code and builds the AtomIndex."""

    def __init__(
        self,
        registry: SourceRegistry,
        emitter: BatchEmitter,
        language: str = "ENG",
        max_atoms: Optional[int] = None,
    ):
        self.registry = registry
        self.emitter = emitter
        self.language = language
        self.max_atoms = max_atoms

    def run(self, records: Iterable[Union[ConceptRecord, MalformedRow]]) -> Tuple[AtomIndex, RunReport]:
        index = AtomIndex(max_atoms=self.max_atoms)
        report = RunReport("Processed concept entries")

        for record in records:
            if isinstance(record, MalformedRow):
                warn_malformed(record)
                report.malformed += 1
                report.skipped += 1
                continue

            source = self.registry.get(record.sab)
            if source is None or record.lat != self.language:
                continue
            priority = source.priority(record.tty)
            if priority is None:
                continue
            if record.suppress != NOT_SUPPRESSED:
                report.skipped += 1
                continue

            # Every accepted atom is kept, relationships may point at non-preferred atoms
            index.add_atom(record)

            incumbent = index.winner(record.sab, record.code)
            if incumbent is None:
                report.increment(source.system)
            elif priority >= source.priority(incumbent.tty):
                continue
            index.set_winner(record)

            self.emitter.append(source.system, CodingAssertion(code=record.code, display=record.name))
            report.processed += 1

        self.emitter.flush_all()
        index.freeze()
        console.log(f"Indexed {len(index):,} atoms for {index.code_count:,} codes.")
        report.print_summary()
        return index, report
