"""
Snapshot and analysis context.

The snapshot holds every typed resource loaded for one run, grouped by
collection in load order. ``AnalysisContext`` exposes it to analyzers
read-only and collects what they report.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from meshcheck.core.analysis.base import Context, Visitor
from meshcheck.core.models.diagnostic import Diagnostic
from meshcheck.core.models.resources import Resource

logger = logging.getLogger(__name__)


class Snapshot:
    """Immutable-by-convention set of resources for one analysis pass."""

    def __init__(self, resources: Iterable[Resource] = ()):
        self._by_collection: dict[str, list[Resource]] = {}
        for res in resources:
            self.add(res)

    def add(self, resource: Resource) -> None:
        """Append a resource to its collection. Loading only."""
        self._by_collection.setdefault(resource.collection, []).append(resource)

    def items(self, collection: str) -> list[Resource]:
        """Resources of one collection, in insertion order."""
        return list(self._by_collection.get(collection, ()))

    def count(self, collection: str) -> int:
        return len(self._by_collection.get(collection, ()))

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_collection.values())

    def __repr__(self) -> str:
        counts = ", ".join(f"{c}={len(v)}" for c, v in self._by_collection.items())
        return f"<Snapshot {counts}>"


class AnalysisContext(Context):
    """Context backed by a ``Snapshot``; reported diagnostics go to ``messages``."""

    def __init__(self, snapshot: Snapshot, declared_inputs: Iterable[str] | None = None):
        self._snapshot = snapshot
        self._declared = set(declared_inputs) if declared_inputs is not None else None
        self.messages: list[Diagnostic] = []

    def for_each(self, collection: str, visitor: Visitor) -> None:
        if self._declared is not None and collection not in self._declared:
            logger.debug("Iterating undeclared collection %s", collection)
        for res in self._snapshot.items(collection):
            if not visitor(res):
                break

    def report(self, collection: str, diagnostic: Diagnostic) -> None:
        logger.debug("Reported on %s: %s", collection, diagnostic)
        self.messages.append(diagnostic)
