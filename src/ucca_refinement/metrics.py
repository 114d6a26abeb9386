"""Batch-level refinement counters."""

from __future__ import annotations

from typing import Iterable

from .entities import UCCAHierarchy


class RefinementMetrics:
    """Accumulate counts over the hierarchies of one or more batches."""

    def __init__(self) -> None:
        self._hierarchies = 0
        self._refined = 0
        self._pruned = 0
        self._high_priority = 0
        self._failed = 0
        self._empty = 0

    def update(self, hierarchy: UCCAHierarchy) -> None:
        self._hierarchies += 1
        self._refined += hierarchy.total_refined
        self._pruned += hierarchy.pruned_count
        self._high_priority += hierarchy.high_priority_count
        if hierarchy.failure is not None:
            self._failed += 1
        elif hierarchy.total_refined == 0:
            self._empty += 1

    def update_all(self, hierarchies: Iterable[UCCAHierarchy]) -> None:
        for hierarchy in hierarchies:
            self.update(hierarchy)

    def metrics(self) -> dict[str, int]:
        return {
            "abstract_uccas": self._hierarchies,
            "refined_uccas": self._refined,
            "pruned_uccas": self._pruned,
            "high_priority_uccas": self._high_priority,
            "failed_uccas": self._failed,
            "empty_uccas": self._empty,
        }
