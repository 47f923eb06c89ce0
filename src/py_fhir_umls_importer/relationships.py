# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
The relationship pass over MRREL.RRF.

Some sources document how their own relationship vocabulary maps onto UMLS
REL/RELA labels in MRDOC.RRF, e.g.

    REL|116680003|snomedct_rel_mapping|CHD|
    RELA|116680003|snomedct_rela_mapping|isa|

which maps SNOMEDCT_US relationships labelled CHD/isa onto property
116680003. A mapped property is only sent when the source declares it, so
every property sent exists on the CodeSystem. Relationships without such a
mapping fall back to the parent and child properties of the target
CodeSystem for PAR and CHD.

Both ends of a relationship are atoms, resolved to codes through the
AtomIndex built by the concept pass.
"""
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Union

from .batching import BatchEmitter
from .models import NOT_SUPPRESSED, DocRecord, MalformedRow, PropertyAssertion, RelationshipRecord
from .normalizer import AtomIndex
from .reporting import SYSTEM_SEPARATOR, RunReport, console
from .rrf import warn_malformed
from .sources import SourceRegistry

DOC_KEYS = ("REL", "RELA")
PARENT_REL = "PAR"
CHILD_REL = "CHD"
MAPPING_SUFFIX = "_mapping"


def _mapping_prefix(doc: DocRecord) -> Optional[str]:
    """Returns 'snomedct' for a REL row typed 'snomedct_rel_mapping', otherwise None."""
    suffix = f"_{doc.dockey.lower()}{MAPPING_SUFFIX}"
    if doc.type.endswith(suffix):
        return doc.type[: -len(suffix)]
    return None


def load_relationship_property_map(
    records: Iterable[Union[DocRecord, MalformedRow]],
    registry: SourceRegistry,
) -> Mapping[str, str]:
    """
    Builds the "SAB/REL/RELA" -> property code map from MRDOC.RRF rows.
    REL and RELA rows documenting the same property are merged into one key.
    """
    merged: Dict[tuple, Dict[str, str]] = {}
    malformed = 0
    for doc in records:
        if isinstance(doc, MalformedRow):
            malformed += 1
            continue
        if doc.dockey not in DOC_KEYS:
            continue
        prefix = _mapping_prefix(doc)
        source = registry.for_doc_prefix(prefix) if prefix else None
        if source is None:
            continue
        merged.setdefault((source.source_id, doc.value), {})[doc.dockey] = doc.expl

    mapping = {
        f"{source_id}/{labels.get('REL', '')}/{labels.get('RELA', '')}": property_code
        for (source_id, property_code), labels in merged.items()
    }
    if malformed:
        console.log(f"[yellow]Skipped {malformed:,} malformed MRDOC.RRF rows.[/yellow]")
    console.log(f"Derived {len(mapping):,} relationship property mappings.")
    return MappingProxyType(mapping)


class RelationshipResolver:
    """Turns MRREL.RRF relationships into code properties whose value is another code."""

    def __init__(self, registry: SourceRegistry, emitter: BatchEmitter, property_map: Mapping[str, str]):
        self.registry = registry
        self.emitter = emitter
        self.property_map = property_map

    def property_for(self, record: RelationshipRecord) -> Optional[str]:
        source = self.registry.get(record.sab)
        if source is None:
            return None
        mapped = self.property_map.get(f"{record.sab}/{record.rel}/{record.rela}")
        if mapped:
            return mapped
        if record.rel == PARENT_REL:
            return source.parent_property
        if record.rel == CHILD_REL:
            return source.child_property
        return None

    def run(
        self,
        records: Iterable[Union[RelationshipRecord, MalformedRow]],
        atom_index: AtomIndex,
    ) -> RunReport:
        report = RunReport("Found relationship properties", group_by_system=True)

        for record in records:
            if isinstance(record, MalformedRow):
                warn_malformed(record)
                report.malformed += 1
                report.skipped += 1
                continue

            source = self.registry.get(record.sab)
            if source is None:
                continue
            if record.suppress != NOT_SUPPRESSED:
                report.skipped += 1
                continue

            property_code = self.property_for(record)
            if not property_code:
                continue
            if source.property_for(property_code) is None:
                console.log(
                    f"[yellow]Skipping relationship mapped to undeclared {source.source_id} property: {property_code} "
                    f"{record.rel}/{record.rela}[/yellow]"
                )
                report.skipped += 1
                continue

            code = atom_index.code_for(record.aui1)
            value = atom_index.code_for(record.aui2)
            if not code or not value:
                missing = f"AUI2={record.aui2}" if code else f"AUI1={record.aui1}"
                console.log(
                    f"[yellow]Skipping relationship with missing atom: {property_code} "
                    f"{record.rel}/{record.rela} {missing}[/yellow]"
                )
                report.skipped += 1
                continue

            self.emitter.append(
                source.system,
                PropertyAssertion(code=code, property=property_code, value=value),
            )
            report.increment(
                f"{source.system}{SYSTEM_SEPARATOR}{property_code} ({record.rel}/{record.rela})"
            )
            report.processed += 1

        self.emitter.flush_all()
        report.print_summary()
        return report
