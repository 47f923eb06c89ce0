# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urljoin

import requests
from rich.markup import escape

from .models import CodingAssertion, PropertyAssertion, SourceDescriptor
from .reporting import console

FHIR_JSON = "application/fhir+json"


class ImportBatchError(RuntimeError):
    """Raised when the terminology server rejects a batch or cannot be reached."""

    def __init__(self, system: str, items: Sequence[Any], message: str, issues: Optional[List[dict]] = None):
        self.system = system
        self.items = list(items)
        self.issues = issues or []
        example = self.items[0].model_dump() if self.items and hasattr(self.items[0], "model_dump") else None
        super().__init__(
            f"Error sending batch of {len(self.items)} entries for system {system}: {message}"
            + (f" (first entry: {example})" if example else "")
            + (f" Issues: {self.issues}" if self.issues else "")
        )


class TerminologyClient:
    """
    Client for the FHIR terminology server that receives the imported concepts.
    Uses the CodeSystem/$import operation, which upserts by code.
    """
    IMPORT_PATH = "fhir/R4/CodeSystem/$import"
    CODE_SYSTEM_PATH = "fhir/R4/CodeSystem"

    def __init__(self, base_url: str, timeout: float = 60.0, session: Optional[requests.Session] = None, debug: bool = False):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.debug = debug

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path)

    def _post(self, path: str, body: dict, system: str, items: Sequence[Any], headers: Optional[Dict[str, str]] = None) -> requests.Response:
        request_headers = {"Content-Type": FHIR_JSON, "Accept": FHIR_JSON}
        request_headers.update(headers or {})
        try:
            response = self.session.post(self._url(path), json=body, headers=request_headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ImportBatchError(system, items, str(e)) from e

        if not response.ok:
            issues = None
            try:
                outcome = response.json()
            except ValueError:
                outcome = None
            # Gateways in front of the server may answer with any JSON value
            if isinstance(outcome, dict):
                issues = outcome.get("issue")
            console.log(f"[bold red]Error sending batch for system {system}:[/bold red] {escape(str(issues or response.text))}")
            raise ImportBatchError(system, items, f"HTTP {response.status_code}", issues)
        return response

    def import_codings(self, system: str, codings: Sequence[CodingAssertion]) -> None:
        parameters = {
            "resourceType": "Parameters",
            "parameter": [{"name": "system", "valueUri": system}]
            + [{"name": "concept", "valueCoding": c.model_dump()} for c in codings],
        }
        self._post(self.IMPORT_PATH, parameters, system, codings)
        if self.debug and codings:
            console.log(f"Processed {len(codings)} {system} codings, ex: {parameters['parameter'][1]}")

    def import_properties(self, system: str, properties: Sequence[PropertyAssertion]) -> None:
        parameters = {
            "resourceType": "Parameters",
            "parameter": [{"name": "system", "valueUri": system}]
            + [
                {
                    "name": "property",
                    "part": [
                        {"name": "code", "valueCode": p.code},
                        {"name": "property", "valueCode": p.property},
                        {"name": "value", "valueString": p.value},
                    ],
                }
                for p in properties
            ],
        }
        self._post(self.IMPORT_PATH, parameters, system, properties)
        if self.debug and properties:
            console.log(f"Processed {len(properties)} {system} properties, ex: {parameters['parameter'][1]}")

    def ensure_code_system(self, source: SourceDescriptor) -> None:
        """Creates the CodeSystem resource for a source unless one with the same url already exists."""
        resource = {
            "resourceType": "CodeSystem",
            "url": source.system,
            "name": source.name,
            "title": source.title,
            "status": "active",
            "content": "not-present",
            "property": [
                {
                    key: value
                    for key, value in {
                        "code": p.code,
                        "uri": p.uri,
                        "description": p.description,
                        "type": p.type,
                    }.items()
                    if value is not None
                }
                for p in source.properties
            ],
        }
        response = self._post(
            self.CODE_SYSTEM_PATH,
            resource,
            source.system,
            [],
            headers={"If-None-Exist": f"url={source.system}"},
        )
        if response.status_code == 201:
            console.log(f"Created CodeSystem {source.system}")
        else:
            console.log(f"CodeSystem {source.system} already exists.")
