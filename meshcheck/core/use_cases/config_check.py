"""
Config check use case — validate meshcheck.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from meshcheck.core.analysis.registry import AnalyzerRegistry, default_registry
from meshcheck.core.config.loader import ConfigError, find_config_file, load_config
from meshcheck.core.models.config import AnalysisConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: AnalysisConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "config": self.config.model_dump(mode="json") if self.config else None,
        }


def check_config(
    config_path: Path | None = None,
    registry: AnalyzerRegistry | None = None,
) -> ConfigCheckResult:
    """Validate analysis configuration and report issues.

    Args:
        config_path: Optional explicit path to meshcheck.yml.
        registry: Analyzers that disabled_analyzers may name.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        result.warnings.append("No meshcheck.yml found; defaults apply.")
    result.config_path = config_path

    try:
        config = load_config(config_path, search=False)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    known = set((registry or default_registry()).list_analyzers())
    for name in config.disabled_analyzers:
        if name not in known:
            result.warnings.append(f"Unknown analyzer in disabled_analyzers: {name}")

    rules = [str(s) for s in config.suppress]
    dupes = sorted({r for r in rules if rules.count(r) > 1})
    if dupes:
        result.warnings.append(f"Duplicate suppressions: {', '.join(dupes)}")

    result.valid = len(result.errors) == 0
    return result
