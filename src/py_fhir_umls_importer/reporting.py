# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from collections import Counter
from typing import List, Optional, Tuple

from rich.console import Console

SYSTEM_SEPARATOR = "|"

# Shared by every pass so log lines render above a live progress bar
console = Console()


class RunReport:
    """
    Counters for a single pass and the summary printed when it ends.

    Counts are keyed by system URI, or by "<system>|<property label>" when
    `group_by_system` is set. The summary order is fully determined by the
    counts and keys, so identical input always prints identical output:
    - group_by_system=False: count descending, then key ascending.
    - group_by_system=True: system ascending, then count descending, then key ascending.
    """

    def __init__(self, title: str, group_by_system: bool = False):
        self.title = title
        self.group_by_system = group_by_system
        self.processed = 0
        self.skipped = 0
        self.malformed = 0
        self.counts: Counter = Counter()

    def increment(self, key: str) -> None:
        self.counts[key] += 1

    def sorted_counts(self) -> List[Tuple[str, int]]:
        if self.group_by_system:
            def sort_key(item):
                key, count = item
                return key.split(SYSTEM_SEPARATOR, 1)[0], -count, key
        else:
            def sort_key(item):
                key, count = item
                return -count, key
        return sorted(self.counts.items(), key=sort_key)

    def summary_lines(self) -> List[str]:
        lines = [
            f"{self.title}: {self.processed:,}",
            f"(skipped {self.skipped:,})",
        ]
        if self.malformed:
            lines.append(f"(malformed {self.malformed:,})")
        lines.append("=" * 30)
        lines.extend(f"{key}: {count:,}" for key, count in self.sorted_counts())
        return lines

    def print_summary(self, log_console: Optional[Console] = None) -> None:
        for line in self.summary_lines():
            (log_console or console).print(line, highlight=False, markup=False)
