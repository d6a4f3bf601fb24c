"""
Analyze use case — load manifests, run analyzers, filter and rank findings.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from meshcheck.core.analysis.registry import AnalyzerRegistry, default_registry
from meshcheck.core.config.loader import ConfigError, load_config
from meshcheck.core.config.manifests import LoadError, load_snapshot
from meshcheck.core.models.config import AnalysisConfig, Suppression
from meshcheck.core.models.diagnostic import Diagnostic, Level

logger = logging.getLogger(__name__)


@dataclass
class AnalyzeResult:
    """Outcome of one analysis run."""

    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    messages: list[Diagnostic] = field(default_factory=list)
    load_errors: list[LoadError] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    resources_loaded: int = 0
    suppressed: int = 0
    analyzers_run: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Whether the run should exit non-zero."""
        if self.error or self.load_errors:
            return True
        threshold = self.config.failure_threshold
        return any(m.level.at_least(threshold) for m in self.messages)

    def counts(self) -> dict[str, int]:
        counts = {level.value: 0 for level in Level}
        for m in self.messages:
            counts[m.level.value] += 1
        return counts

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {"ok": not self.failed}
        if self.error:
            result["error"] = self.error
            return result
        result.update({
            "files_checked": len(self.files),
            "resources_loaded": self.resources_loaded,
            "analyzers": self.analyzers_run,
            "messages": [m.to_dict() for m in self.messages],
            "counts": self.counts(),
            "suppressed": self.suppressed,
            "load_errors": [e.to_dict() for e in self.load_errors],
        })
        return result


def sorted_unique(messages: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Order diagnostics by resource then code, dropping exact duplicates.

    Listeners repeating the same unbacked port collapse into one finding.
    """
    seen: set[tuple] = set()
    unique: list[Diagnostic] = []
    for m in sorted(messages, key=Diagnostic.sort_key):
        key = (m.sort_key(), m.resource.origin if m.resource else "")
        if key in seen:
            continue
        seen.add(key)
        unique.append(m)
    return unique


def run_analysis(
    paths: Iterable[str | Path],
    config_path: Path | None = None,
    suppress: Iterable[str] = (),
    failure_threshold: str | None = None,
    output_threshold: str | None = None,
    namespace: str | None = None,
    analyzers: Iterable[str] | None = None,
    recursive: bool = True,
    registry: AnalyzerRegistry | None = None,
    stdin: TextIO | None = None,
) -> AnalyzeResult:
    """Analyze the manifests under ``paths``.

    Args:
        paths: Files or directories to load (``-`` for stdin).
        config_path: Optional explicit meshcheck.yml.
        suppress: Extra ``CODE=Kind name`` rules on top of the config file.
        failure_threshold: Lowest level that makes the run fail.
        output_threshold: Lowest level that is reported at all.
        namespace: Namespace for resources that don't declare one.
        analyzers: Restrict the run to these analyzer names.
        recursive: Descend into sub-directories.
        registry: Analyzers to run (default: all built-ins).

    Returns:
        AnalyzeResult; never raises for configuration or input problems.
    """
    result = AnalyzeResult()

    try:
        config = load_config(config_path)
        overrides: dict = {}
        if failure_threshold:
            overrides["failure_threshold"] = Level.parse(failure_threshold)
        if output_threshold:
            overrides["output_threshold"] = Level.parse(output_threshold)
        if namespace:
            overrides["default_namespace"] = namespace
        extra = [Suppression.parse(rule) for rule in suppress]
        if extra:
            overrides["suppress"] = [*config.suppress, *extra]
        if overrides:
            config = config.model_copy(update=overrides)
    except (ConfigError, ValueError) as e:
        result.error = str(e)
        return result
    result.config = config

    registry = registry or default_registry()
    names = list(analyzers) if analyzers else None
    try:
        selected = registry.select(names, disabled=config.disabled_analyzers)
    except KeyError as e:
        result.error = str(e.args[0])
        return result
    result.analyzers_run = [a.name for a in selected]

    loaded = load_snapshot(paths, config=config, recursive=recursive, stdin=stdin)
    result.files = loaded.files
    result.load_errors = loaded.errors
    result.resources_loaded = len(loaded.snapshot)

    messages = registry.analyze(
        loaded.snapshot, names=names, disabled=config.disabled_analyzers,
    )

    kept: list[Diagnostic] = []
    for m in messages:
        if config.is_suppressed(m):
            result.suppressed += 1
            continue
        if not m.level.at_least(config.output_threshold):
            continue
        kept.append(m)

    result.messages = sorted_unique(kept)
    logger.info(
        "Analysis finished: %d message(s), %d suppressed", len(result.messages), result.suppressed,
    )
    return result
