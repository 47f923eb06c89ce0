# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .sources import DEFAULT_SOURCE_IDS


class Settings(BaseSettings):
    """
    Manages the application's configuration settings.
    Utilizes Pydantic's BaseSettings to allow for environment variable overrides.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="PYFHIRUMLS_",
        extra="ignore",
    )

    # --- Destination terminology server ---
    fhir_base_url: str = Field(
        "http://localhost:8103/",
        description="Base URL of the FHIR server exposing CodeSystem/$import."
    )
    request_timeout: float = Field(60.0, gt=0, description="Timeout in seconds for each import request.")

    # --- Input files ---
    meta_dir: str = Field(
        "./META",
        description="Directory holding MRCONSO.RRF, MRSAT.RRF, MRREL.RRF and MRDOC.RRF."
    )

    # --- ETL Filters & Behavior ---
    sources: List[str] = Field(
        default=list(DEFAULT_SOURCE_IDS),
        description="UMLS Source Vocabularies (SABs) to import. Each must be known to the source registry."
    )
    language: str = Field("ENG", description="Only atoms in this language (MRCONSO LAT) are imported.")
    batch_size: int = Field(500, gt=0, description="Maximum number of codings or properties per import request.")
    max_indexed_atoms: Optional[int] = Field(
        default=None,
        gt=0,
        description="Upper bound on atoms retained for relationship resolution. Unbounded when unset."
    )
    debug: bool = Field(False, description="Log an example entry for every batch sent.")


@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the Settings object.
    Components receive values from it explicitly rather than importing a global.
    """
    return Settings()
