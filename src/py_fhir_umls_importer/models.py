# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

PARENT_PROPERTY_URI = "http://hl7.org/fhir/concept-properties#parent"
CHILD_PROPERTY_URI = "http://hl7.org/fhir/concept-properties#child"

NOT_SUPPRESSED = "N"


class ConceptRecord(BaseModel):
    """
    One atom from MRCONSO.RRF.
    See https://www.ncbi.nlm.nih.gov/books/NBK9685/table/ch03.T.concept_names_and_sources_file_mr
    """
    model_config = ConfigDict(frozen=True)

    cui: str
    lat: str  # Language, e.g. ENG
    ts: str
    lui: str
    stt: str
    sui: str
    ispref: str
    aui: str  # Atom identifier, referenced by MRREL.AUI1/AUI2
    saui: str
    scui: str
    sdui: str
    sab: str
    tty: str  # Term type in source, e.g. PT
    code: str
    name: str  # STR column
    srl: str
    suppress: str  # O, E, Y or N
    cvf: str


class AttributeRecord(BaseModel):
    """
    One attribute from MRSAT.RRF.
    See https://www.ncbi.nlm.nih.gov/books/NBK9685/table/ch03.T.simple_concept_and_atom_attribute
    """
    model_config = ConfigDict(frozen=True)

    cui: str
    lui: str
    sui: str
    metaui: str
    stype: str
    code: str
    atui: str
    satui: str
    atn: str  # Attribute name
    sab: str
    atv: str  # Attribute value
    suppress: str
    cvf: str


class RelationshipRecord(BaseModel):
    """
    One relationship from MRREL.RRF. REL is the relationship of the second atom to the first.
    See https://www.ncbi.nlm.nih.gov/books/NBK9685/table/ch03.T.related_concepts_file_mrrel_rrf
    """
    model_config = ConfigDict(frozen=True)

    cui1: str
    aui1: str
    stype1: str
    rel: str
    cui2: str
    aui2: str
    stype2: str
    rela: str
    rui: str
    srui: str
    sab: str
    sl: str
    rg: str
    dir: str
    suppress: str
    cvf: str


class DocRecord(BaseModel):
    """One row of MRDOC.RRF, documenting an abbreviation used in the other files."""
    model_config = ConfigDict(frozen=True)

    dockey: str
    value: str
    type: str
    expl: str


class MalformedRow(BaseModel):
    """Returned by a decoder instead of a record when the column count does not match its schema."""
    schema_name: str
    line_number: int
    field_count: int
    expected: int


class CodingAssertion(BaseModel):
    """A single {code, display} entry of a concept import batch."""
    code: str
    display: str


class PropertyAssertion(BaseModel):
    """
    A property value attached to a code. For relationships the value is the
    code of the related concept.
    """
    code: str
    property: str
    value: str


class PropertyDefinition(BaseModel):
    """A property declared by a target CodeSystem."""
    model_config = ConfigDict(frozen=True)

    code: str
    uri: Optional[str] = None
    description: Optional[str] = None
    type: str = "string"


class SourceDescriptor(BaseModel):
    """
    Describes how one UMLS source vocabulary (SAB) maps onto a FHIR CodeSystem.
    The order of accepted_term_types is significant: lower index means a more
    preferred display string.
    """
    model_config = ConfigDict(frozen=True)

    source_id: str
    system: str
    name: str
    title: str
    accepted_term_types: Tuple[str, ...]
    properties: Tuple[PropertyDefinition, ...] = ()
    doc_mapping_prefix: Optional[str] = None

    def priority(self, tty: str) -> Optional[int]:
        try:
            return self.accepted_term_types.index(tty)
        except ValueError:
            return None

    def property_for(self, code: Optional[str]) -> Optional[PropertyDefinition]:
        if not code:
            return None
        return next((p for p in self.properties if p.code == code), None)

    def _property_with_uri(self, uri: str) -> Optional[str]:
        return next((p.code for p in self.properties if p.uri == uri), None)

    @property
    def parent_property(self) -> Optional[str]:
        return self._property_with_uri(PARENT_PROPERTY_URI)

    @property
    def child_property(self) -> Optional[str]:
        return self._property_with_uri(CHILD_PROPERTY_URI)
