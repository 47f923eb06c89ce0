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

from pydantic import BaseModel, ConfigDict

from .batching import BatchEmitter
from .client import TerminologyClient
from .config import Settings
from .normalizer import AtomIndex, ConceptNormalizer
from .properties import PropertyMapper
from .relationships import RelationshipResolver, load_relationship_property_map
from .reporting import RunReport, console
from .rrf import MRCONSO, MRDOC, MRREL, MRSAT, stream_rrf
from .sources import SourceRegistry, build_registry


class PipelineResult(BaseModel):
    """What a completed run produced, pass by pass."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    atom_index: AtomIndex
    concepts: RunReport
    properties: Optional[RunReport] = None
    relationships: Optional[RunReport] = None


class ImportPipeline:
    """
    Orchestrates the import of a UMLS release into the terminology server:
    concepts first, then attributes, then relationships. The relationship pass
    needs the AtomIndex built by the concept pass, so the passes run in order.
    """

    def __init__(
        self,
        meta_dir: Path,
        registry: SourceRegistry,
        client: TerminologyClient,
        batch_size: int = 500,
        language: str = "ENG",
        max_indexed_atoms: Optional[int] = None,
    ):
        self.meta_dir = Path(meta_dir)
        self.registry = registry
        self.client = client
        self.batch_size = batch_size
        self.language = language
        self.max_indexed_atoms = max_indexed_atoms
        self.mrconso_path = self.meta_dir / MRCONSO.name
        self.mrsat_path = self.meta_dir / MRSAT.name
        self.mrrel_path = self.meta_dir / MRREL.name
        self.mrdoc_path = self.meta_dir / MRDOC.name

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[TerminologyClient] = None) -> "ImportPipeline":
        client = client or TerminologyClient(
            settings.fhir_base_url, timeout=settings.request_timeout, debug=settings.debug
        )
        return cls(
            meta_dir=Path(settings.meta_dir),
            registry=build_registry(settings.sources),
            client=client,
            batch_size=settings.batch_size,
            language=settings.language,
            max_indexed_atoms=settings.max_indexed_atoms,
        )

    def required_files(self, include_properties: bool = True, include_relationships: bool = True) -> List[Path]:
        files = [self.mrconso_path]
        if include_properties:
            files.append(self.mrsat_path)
        if include_relationships:
            files.extend([self.mrdoc_path, self.mrrel_path])
        return files

    def check_inputs(self, include_properties: bool = True, include_relationships: bool = True) -> None:
        """Fails before any pass starts if an input file is missing."""
        missing = [
            str(p) for p in self.required_files(include_properties, include_relationships) if not p.is_file()
        ]
        if missing:
            raise FileNotFoundError(f"Required UMLS files not found: {', '.join(missing)}")

    def ensure_code_systems(self) -> None:
        console.log("Ensuring CodeSystem resources exist...")
        for source in self.registry:
            self.client.ensure_code_system(source)

    def run_concepts(self) -> PipelineResult:
        console.log("Processing concepts from MRCONSO.RRF...")
        emitter = BatchEmitter(self.client.import_codings, self.batch_size)
        normalizer = ConceptNormalizer(
            self.registry, emitter, language=self.language, max_atoms=self.max_indexed_atoms
        )
        atom_index, report = normalizer.run(stream_rrf(self.mrconso_path, MRCONSO, "Parsing MRCONSO..."))
        return PipelineResult(atom_index=atom_index, concepts=report)

    def run_properties(self) -> RunReport:
        console.log("Processing code properties from MRSAT.RRF...")
        emitter = BatchEmitter(self.client.import_properties, self.batch_size)
        mapper = PropertyMapper(self.registry, emitter)
        return mapper.run(stream_rrf(self.mrsat_path, MRSAT, "Parsing MRSAT..."))

    def run_relationships(self, atom_index: AtomIndex) -> RunReport:
        console.log("Deriving relationship properties from MRDOC.RRF...")
        property_map = load_relationship_property_map(stream_rrf(self.mrdoc_path, MRDOC), self.registry)
        console.log("Processing relationships from MRREL.RRF...")
        emitter = BatchEmitter(self.client.import_properties, self.batch_size)
        resolver = RelationshipResolver(self.registry, emitter, property_map)
        return resolver.run(stream_rrf(self.mrrel_path, MRREL, "Parsing MRREL..."), atom_index)

    def run(self, include_properties: bool = True, include_relationships: bool = True) -> PipelineResult:
        self.check_inputs(include_properties, include_relationships)
        self.ensure_code_systems()

        result = self.run_concepts()
        if include_properties:
            console.print()
            result.properties = self.run_properties()
        if include_relationships:
            console.print()
            result.relationships = self.run_relationships(result.atom_index)
        return result
