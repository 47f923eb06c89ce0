# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from pathlib import Path

import pytest

from py_fhir_umls_importer.config import get_settings
from py_fhir_umls_importer.models import SourceDescriptor
from py_fhir_umls_importer.rrf import MRCONSO, MRDOC, MRREL, MRSAT
from py_fhir_umls_importer.sources import SourceRegistry, build_registry

from helpers import conso_line, doc_line, rel_line, sat_line

# --- A small UMLS release exercising every filter ---

MRCONSO_DATA = "".join([
    conso_line("A0000001", "SNOMEDCT_US", "SY", "100", "Heart attack"),
    conso_line("A0000002", "SNOMEDCT_US", "FN", "100", "Myocardial infarction (disorder)"),
    conso_line("A0000003", "SNOMEDCT_US", "PT", "100", "Myocardial infarction"),
    conso_line("A0000004", "SNOMEDCT_US", "PT", "200", "Heart disease"),
    conso_line("A0000005", "LNC", "LN", "1234-5", "Glucose [Mass/volume] in Serum or Plasma"),
    conso_line("A0000006", "LNC", "LC", "1234-5", "Glucose SerPl-mCnc"),
    conso_line("A0000007", "MSH", "MH", "D000001", "Not imported"),
    conso_line("A0000008", "SNOMEDCT_US", "PT", "300", "Obsolete concept", suppress="O"),
    conso_line("A0000009", "SNOMEDCT_US", "PT", "200", "Maladie cardiaque", lat="FRE"),
])

MRSAT_DATA = "".join([
    sat_line("1234-5", "LOINC_COMPONENT", "LNC", "Glucose"),
    sat_line("1234-5", "CLASS", "LNC", "CHEM"),
    sat_line("1234-5", "UNKNOWN_ATTRIBUTE", "LNC", "ignored"),
    sat_line("1234-5", "LCS", "LNC", "DEPRECATED", suppress="O"),
    sat_line("D000001", "MED", "MSH", "ignored"),
])

MRDOC_DATA = "".join([
    doc_line("REL", "363698007", "snomedct_rel_mapping", "RO"),
    doc_line("RELA", "363698007", "snomedct_rela_mapping", "has_finding_site"),
    doc_line("RELA", "999", "other_rela_mapping", "foo"),
    doc_line("TTY", "PT", "expanded_form", "Designated preferred name"),
])

MRREL_DATA = "".join([
    rel_line("A0000004", "CHD", "A0000002", "SNOMEDCT_US"),
    rel_line("A0000002", "PAR", "A0000004", "SNOMEDCT_US"),
    rel_line("A0000002", "RO", "A0000004", "SNOMEDCT_US", rela="has_finding_site"),
    rel_line("A0000002", "CHD", "A0000008", "SNOMEDCT_US"),
    rel_line("A0000002", "RO", "A0000004", "SNOMEDCT_US", rela="unmapped"),
    rel_line("A0000002", "PAR", "A0000004", "SNOMEDCT_US", suppress="E"),
])


@pytest.fixture
def meta_dir(tmp_path: Path) -> Path:
    """Creates a mock UMLS release directory with all four RRF files."""
    meta = tmp_path / "2023AB" / "META"
    meta.mkdir(parents=True)
    (meta / "MRCONSO.RRF").write_text(MRCONSO_DATA)
    (meta / "MRSAT.RRF").write_text(MRSAT_DATA)
    (meta / "MRDOC.RRF").write_text(MRDOC_DATA)
    (meta / "MRREL.RRF").write_text(MRREL_DATA)
    return meta


@pytest.fixture
def registry() -> SourceRegistry:
    return build_registry(["SNOMEDCT_US", "LNC"])


@pytest.fixture
def x_registry() -> SourceRegistry:
    """A registry with a single synthetic source X whose term types rank A > B > C."""
    return SourceRegistry([
        SourceDescriptor(
            source_id="X",
            system="http://example.org/x",
            name="X",
            title="Example source",
            accepted_term_types=("A", "B", "C"),
        )
    ])


@pytest.fixture
def concepts():
    """Decodes MRCONSO lines into records."""
    return lambda *lines: [MRCONSO.decode(line) for line in lines]


@pytest.fixture
def attributes():
    return lambda *lines: [MRSAT.decode(line) for line in lines]


@pytest.fixture
def relationships():
    return lambda *lines: [MRREL.decode(line) for line in lines]


@pytest.fixture
def docs():
    return lambda *lines: [MRDOC.decode(line) for line in lines]


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Keeps settings from leaking between tests through the lru_cache."""
    for name in ("PYFHIRUMLS_SOURCES", "PYFHIRUMLS_BATCH_SIZE", "PYFHIRUMLS_META_DIR", "PYFHIRUMLS_FHIR_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
