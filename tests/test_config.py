# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
import json

import pytest
from pydantic import ValidationError

from py_fhir_umls_importer.config import Settings, get_settings
from py_fhir_umls_importer.sources import DEFAULT_SOURCE_IDS


def test_defaults():
    settings = get_settings()

    assert settings.batch_size == 500
    assert settings.language == "ENG"
    assert settings.sources == list(DEFAULT_SOURCE_IDS)
    assert settings.max_indexed_atoms is None


def test_settings_load_from_env(monkeypatch):
    monkeypatch.setenv("PYFHIRUMLS_FHIR_BASE_URL", "http://fhir.test/")
    monkeypatch.setenv("PYFHIRUMLS_BATCH_SIZE", "100")
    # For complex types like lists, pydantic-settings expects a JSON-encoded string
    monkeypatch.setenv("PYFHIRUMLS_SOURCES", json.dumps(["LNC", "CVX"]))

    settings = get_settings()

    assert settings.fhir_base_url == "http://fhir.test/"
    assert settings.batch_size == 100
    assert settings.sources == ["LNC", "CVX"]


def test_settings_are_cached():
    assert get_settings() is get_settings()


@pytest.mark.parametrize("field, value", [
    ("batch_size", 0),
    ("request_timeout", -1),
    ("max_indexed_atoms", 0),
])
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})
