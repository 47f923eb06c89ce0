# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from collections import defaultdict
from typing import Callable, Dict, Generic, List, TypeVar

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 500


class BatchEmitter(Generic[T]):
    """
    Accumulates items per target code system and hands them to `send` in
    batches of at most `capacity` items.

    `send(system, items)` is called synchronously. If it raises, the error
    propagates to the caller and the batch is kept, so nothing is silently lost.
    """

    def __init__(self, send: Callable[[str, List[T]], None], capacity: int = DEFAULT_BATCH_SIZE):
        if capacity < 1:
            raise ValueError(f"Batch capacity must be positive, got {capacity}.")
        self._send = send
        self.capacity = capacity
        # dicts keep insertion order, which makes flush_all FIFO by first appearance
        self._open: Dict[str, List[T]] = {}
        self.batches_sent: Dict[str, int] = defaultdict(int)
        self.items_sent: Dict[str, int] = defaultdict(int)

    def append(self, system: str, item: T) -> None:
        batch = self._open.setdefault(system, [])
        batch.append(item)
        if len(batch) >= self.capacity:
            self._flush(system)

    def flush_all(self) -> None:
        """Sends every non-empty open batch. Called once at the end of a stream."""
        for system in list(self._open):
            if self._open[system]:
                self._flush(system)

    def pending(self, system: str) -> int:
        return len(self._open.get(system, ()))

    def _flush(self, system: str) -> None:
        batch = self._open[system]
        self._send(system, list(batch))
        self.batches_sent[system] += 1
        self.items_sent[system] += len(batch)
        batch.clear()
