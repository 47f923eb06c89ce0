import pytest

from py_fhir_umls_importer.models import SourceDescriptor
from py_fhir_umls_importer.sources import (
    ATTRIBUTE_ALIASES,
    DEFAULT_SOURCE_IDS,
    SourceRegistry,
    build_registry,
)


def test_default_registry_contains_every_source():
    registry = build_registry()
    assert [s.source_id for s in registry] == list(DEFAULT_SOURCE_IDS)
    assert registry.get("SNOMEDCT_US").system == "http://snomed.info/sct"
    assert registry.get("LNC").system == "http://loinc.org"
    assert "MSH" not in registry


def test_build_registry_subset_keeps_requested_order():
    registry = build_registry(["LNC", "CVX", "LNC"])
    assert [s.source_id for s in registry] == ["LNC", "CVX"]
    assert len(registry) == 2


def test_build_registry_rejects_unknown_source():
    with pytest.raises(ValueError, match="Unknown source vocabulary 'NOPE'"):
        build_registry(["SNOMEDCT_US", "NOPE"])


def test_term_type_priority_follows_declared_order():
    snomed = build_registry().get("SNOMEDCT_US")
    assert snomed.accepted_term_types == ("FN", "PT", "SY")
    assert snomed.priority("FN") == 0
    assert snomed.priority("SY") == 2
    assert snomed.priority("AB") is None


def test_parent_and_child_properties():
    registry = build_registry()
    assert registry.get("SNOMEDCT_US").parent_property == "parent"
    assert registry.get("ICD10CM").child_property == "child"
    assert registry.get("CVX").parent_property is None
    assert registry.get("RXNORM").child_property is None


def test_resolve_attribute_direct_and_aliased():
    registry = build_registry()
    loinc = registry.get("LNC")

    assert registry.resolve_attribute(loinc, "CLASS").code == "CLASS"
    assert registry.resolve_attribute(loinc, "LOINC_TIME_ASPECT").code == "TIME_ASPCT"
    assert registry.resolve_attribute(loinc, "LC").code == "LONG_COMMON_NAME"
    assert registry.resolve_attribute(loinc, "NOT_A_PROPERTY") is None
    # Aliases only apply when the target system declares the aliased property
    assert registry.resolve_attribute(registry.get("CVX"), "LOINC_COMPONENT") is None


def test_doc_prefix_lookup():
    registry = build_registry()
    assert registry.for_doc_prefix("snomedct").source_id == "SNOMEDCT_US"
    assert registry.for_doc_prefix("loinc") is None
    assert build_registry(["LNC"]).for_doc_prefix("snomedct") is None


def test_registry_is_read_only():
    registry = build_registry()
    with pytest.raises(TypeError):
        registry.aliases["NEW"] = "VALUE"
    with pytest.raises(Exception):
        registry.get("LNC").system = "http://example.org"
    assert registry.aliases["LOR"] == ATTRIBUTE_ALIASES["LOR"]


def test_registry_rejects_duplicate_sources():
    source = SourceDescriptor(source_id="X", system="urn:x", name="X", title="X", accepted_term_types=("PT",))
    with pytest.raises(ValueError, match="Duplicate"):
        SourceRegistry([source, source])
