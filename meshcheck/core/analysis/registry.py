"""
Analyzer registry — central dispatch for all analyzers.

The registry is the single point of analyzer management. It handles
registration, lookup, selection and running analyzers over a snapshot.
The use cases never call analyzers directly — always through the
registry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from meshcheck.core.analysis import collections
from meshcheck.core.analysis.base import Analyzer, Metadata
from meshcheck.core.analysis.context import AnalysisContext, Snapshot
from meshcheck.core.analyzers.gateway import IngressGatewayPortAnalyzer
from meshcheck.core.models.diagnostic import Diagnostic, internal_error

logger = logging.getLogger(__name__)


class AnalyzerRegistry:
    """Central registry and dispatcher for analyzers.

    Features:
        - Register/unregister analyzers by name
        - Run all (or a named subset of) analyzers over a snapshot
        - Isolate analyzer crashes as InternalError diagnostics
    """

    def __init__(self) -> None:
        self._analyzers: dict[str, Analyzer] = {}

    def register(self, analyzer: Analyzer) -> None:
        """Register an analyzer under its metadata name."""
        name = analyzer.name
        if name in self._analyzers:
            logger.warning("Overwriting existing analyzer: %s", name)
        unknown = [c for c in analyzer.metadata.inputs if c not in collections.ALL]
        if unknown:
            logger.warning("Analyzer %s declares unknown inputs: %s", name, ", ".join(unknown))
        self._analyzers[name] = analyzer
        logger.debug("Registered analyzer: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an analyzer from the registry."""
        self._analyzers.pop(name, None)

    def get(self, name: str) -> Analyzer | None:
        """Look up an analyzer by name."""
        return self._analyzers.get(name)

    def list_analyzers(self) -> list[str]:
        """List all registered analyzer names."""
        return list(self._analyzers.keys())

    def metadata(self) -> list[Metadata]:
        return [a.metadata for a in self._analyzers.values()]

    def select(
        self,
        names: Iterable[str] | None = None,
        disabled: Iterable[str] = (),
    ) -> list[Analyzer]:
        """Resolve which analyzers a run uses.

        Raises:
            KeyError: If ``names`` mentions an analyzer that isn't registered.
        """
        skip = set(disabled)
        if names:
            wanted = list(names)
            missing = [n for n in wanted if n not in self._analyzers]
            if missing:
                raise KeyError(f"Unknown analyzer(s): {', '.join(missing)}")
            chosen = [self._analyzers[n] for n in wanted]
        else:
            chosen = list(self._analyzers.values())
        return [a for a in chosen if a.name not in skip]

    def analyze(
        self,
        snapshot: Snapshot,
        names: Iterable[str] | None = None,
        disabled: Iterable[str] = (),
    ) -> list[Diagnostic]:
        """Run the selected analyzers over a snapshot.

        Diagnostics come back in the order analyzers reported them. An
        analyzer that raises is logged, recorded as an InternalError
        diagnostic, and the remaining analyzers still run.
        """
        messages: list[Diagnostic] = []
        for analyzer in self.select(names, disabled):
            meta = analyzer.metadata
            context = AnalysisContext(snapshot, declared_inputs=meta.inputs)
            logger.info("Running analyzer %s", meta.name)
            try:
                analyzer.analyze(context)
            except Exception as e:
                logger.exception("Analyzer %s failed", meta.name)
                context.messages.append(
                    internal_error(f"analyzer {meta.name} failed: {e}")
                )
            messages.extend(context.messages)
        return messages


def default_registry() -> AnalyzerRegistry:
    """Build a registry holding every built-in analyzer."""
    registry = AnalyzerRegistry()
    registry.register(IngressGatewayPortAnalyzer())
    return registry
