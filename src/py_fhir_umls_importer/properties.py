# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from typing import Iterable, Union

from .batching import BatchEmitter
from .models import NOT_SUPPRESSED, AttributeRecord, MalformedRow, PropertyAssertion
from .reporting import SYSTEM_SEPARATOR, RunReport, console
from .rrf import warn_malformed
from .sources import SourceRegistry


class PropertyMapper:
    """Turns MRSAT.RRF attributes into code properties of the target CodeSystems."""

    def __init__(self, registry: SourceRegistry, emitter: BatchEmitter):
        self.registry = registry
        self.emitter = emitter

    def run(self, records: Iterable[Union[AttributeRecord, MalformedRow]]) -> RunReport:
        report = RunReport("Found code properties", group_by_system=True)

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

            prop = self.registry.resolve_attribute(source, record.atn)
            if prop is None:
                continue

            # Attribute rows carry the source code directly, no atom lookup needed
            self.emitter.append(
                source.system,
                PropertyAssertion(code=record.code, property=prop.code, value=record.atv),
            )
            report.increment(f"{source.system}{SYSTEM_SEPARATOR}{prop.code}")
            report.processed += 1

        self.emitter.flush_all()
        report.print_summary()
        return report
