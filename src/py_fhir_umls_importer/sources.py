# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
This module describes which UMLS source vocabularies are imported and how each
one maps onto a FHIR CodeSystem.

The tables below are static. `build_registry` turns them into an immutable
`SourceRegistry` that is constructed once per run and handed to each pipeline
stage.

Term type references:
https://www.nlm.nih.gov/research/umls/knowledge_sources/metathesaurus/release/abbreviations.html#mrdoc_TTY
"""
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional

from .models import (
    CHILD_PROPERTY_URI,
    PARENT_PROPERTY_URI,
    PropertyDefinition,
    SourceDescriptor,
)

PARENT = PropertyDefinition(code="parent", uri=PARENT_PROPERTY_URI, description="Parent codes", type="code")
CHILD = PropertyDefinition(code="child", uri=CHILD_PROPERTY_URI, description="Child codes", type="code")


def _props(*codes: str) -> tuple:
    return tuple(PropertyDefinition(code=code) for code in codes)


SNOMEDCT_US = SourceDescriptor(
    source_id="SNOMEDCT_US",
    system="http://snomed.info/sct",
    name="SNOMEDCT",
    title="SNOMED CT (US Edition)",
    accepted_term_types=("FN", "PT", "SY"),
    properties=(
        PARENT,
        CHILD,
        PropertyDefinition(code="116680003", description="Is a", type="code"),
        PropertyDefinition(code="363698007", description="Finding site", type="code"),
        PropertyDefinition(code="116676008", description="Associated morphology", type="code"),
        PropertyDefinition(code="246075003", description="Causative agent", type="code"),
        PropertyDefinition(code="370135005", description="Pathological process", type="code"),
        PropertyDefinition(code="260686004", description="Method", type="code"),
        PropertyDefinition(code="405813007", description="Procedure site - Direct", type="code"),
        PropertyDefinition(code="127489000", description="Has active ingredient", type="code"),
        PropertyDefinition(code="411116001", description="Has manufactured dose form", type="code"),
    ),
    doc_mapping_prefix="snomedct",
)

LNC = SourceDescriptor(
    source_id="LNC",
    system="http://loinc.org",
    name="LOINC",
    title="Logical Observation Identifiers, Names and Codes (LOINC)",
    accepted_term_types=("LC", "LPDN", "LA", "DN", "HC", "LN", "LG"),
    properties=(PARENT, CHILD) + _props(
        "COMPONENT", "PROPERTY", "TIME_ASPCT", "SYSTEM", "SCALE_TYP", "METHOD_TYP",
        "CLASS", "CLASSTYPE", "STATUS", "CHNG_TYPE", "EXMPL_ANSWERS", "FORMULA",
        "MAP_TO", "UNITSREQUIRED", "LONG_COMMON_NAME", "ORDER_OBS",
        "SURVEY_QUEST_SRC", "SURVEY_QUEST_TEXT", "RELATEDNAMES2",
    ),
)

RXNORM = SourceDescriptor(
    source_id="RXNORM",
    system="http://www.nlm.nih.gov/research/umls/rxnorm",
    name="RxNorm",
    title="RxNorm",
    accepted_term_types=("PSN", "MIN", "SBD", "SCD", "SBDG", "SCDG", "GPCK", "SY"),
    properties=_props("RXN_STRENGTH", "RXN_AVAILABLE_STRENGTH", "RXN_HUMAN_DRUG", "RXN_QUANTITY"),
)

CPT = SourceDescriptor(
    source_id="CPT",
    system="http://www.ama-assn.org/go/cpt",
    name="CPT",
    title="Current Procedural Terminology (CPT)",
    accepted_term_types=("PT", "HT", "POS", "MP", "GLP"),
    properties=(PARENT, CHILD),
)

CVX = SourceDescriptor(
    source_id="CVX",
    system="http://hl7.org/fhir/sid/cvx",
    name="CVX",
    title="Vaccines Administered (CVX)",
    accepted_term_types=("PT",),
)

ICD10PCS = SourceDescriptor(
    source_id="ICD10PCS",
    system="http://hl7.org/fhir/sid/icd-10-pcs",
    name="ICD10PCS",
    title="ICD-10 Procedure Coding System",
    accepted_term_types=("PT", "HT"),
    properties=(PARENT, CHILD),
)

ICD10CM = SourceDescriptor(
    source_id="ICD10CM",
    system="http://hl7.org/fhir/sid/icd-10-cm",
    name="ICD10CM",
    title="ICD-10 Clinical Modification",
    accepted_term_types=("PT", "HT"),
    properties=(PARENT, CHILD),
)

ALL_SOURCES = (SNOMEDCT_US, LNC, RXNORM, CPT, CVX, ICD10PCS, ICD10CM)
DEFAULT_SOURCE_IDS = tuple(s.source_id for s in ALL_SOURCES)

# MRSAT attribute names (ATN) that differ from the target property code.
ATTRIBUTE_ALIASES = {
    "LOINC_COMPONENT": "COMPONENT",
    "LOINC_METHOD_TYP": "METHOD_TYP",
    "LOINC_PROPERTY": "PROPERTY",
    "LOINC_SCALE_TYP": "SCALE_TYP",
    "LOINC_SYSTEM": "SYSTEM",
    "LOINC_TIME_ASPECT": "TIME_ASPCT",
    "LOR": "ORDER_OBS",
    "LQS": "SURVEY_QUEST_SRC",
    "LQT": "SURVEY_QUEST_TEXT",
    "LRN2": "RELATEDNAMES2",
    "LCL": "CLASS",
    "LCN": "CLASSTYPE",
    "LCS": "STATUS",
    "LCT": "CHNG_TYPE",
    "LEA": "EXMPL_ANSWERS",
    "LFO": "FORMULA",
    "LMP": "MAP_TO",
    "LUR": "UNITSREQUIRED",
    "LC": "LONG_COMMON_NAME",
}


class SourceRegistry:
    """Read-only lookup of the source vocabularies enabled for a run."""

    def __init__(self, sources: Iterable[SourceDescriptor], aliases: Optional[Mapping[str, str]] = None):
        by_id: Dict[str, SourceDescriptor] = {}
        for source in sources:
            if source.source_id in by_id:
                raise ValueError(f"Duplicate source vocabulary '{source.source_id}' in registry.")
            by_id[source.source_id] = source
        self._sources = MappingProxyType(by_id)
        self._aliases = MappingProxyType(dict(aliases if aliases is not None else ATTRIBUTE_ALIASES))

    def get(self, source_id: str) -> Optional[SourceDescriptor]:
        return self._sources.get(source_id)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._sources

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(self._sources.values())

    def __len__(self) -> int:
        return len(self._sources)

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def resolve_attribute(self, source: SourceDescriptor, atn: str) -> Optional[PropertyDefinition]:
        """Finds the target property for an attribute name, directly or through the alias table."""
        return source.property_for(atn) or source.property_for(self._aliases.get(atn))

    def for_doc_prefix(self, prefix: str) -> Optional[SourceDescriptor]:
        return next((s for s in self._sources.values() if s.doc_mapping_prefix == prefix), None)


def build_registry(source_ids: Optional[Iterable[str]] = None) -> SourceRegistry:
    """
    Builds the registry for the given SABs, or for every known source when none are given.
    Raises ValueError for an unknown SAB so configuration mistakes fail before any file is read.
    """
    known = {s.source_id: s for s in ALL_SOURCES}
    if source_ids is None:
        return SourceRegistry(ALL_SOURCES)

    selected = []
    for source_id in source_ids:
        if source_id not in known:
            raise ValueError(
                f"Unknown source vocabulary '{source_id}'. Known sources: {sorted(known)}"
            )
        if known[source_id] not in selected:
            selected.append(known[source_id])
    return SourceRegistry(selected)
