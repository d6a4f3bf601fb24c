"""
Analysis configuration — loaded from meshcheck.yml, overridden by CLI flags.
"""

from __future__ import annotations

from fnmatch import fnmatchcase

from pydantic import BaseModel, Field, field_validator

from meshcheck.core.models.diagnostic import Diagnostic, Level


class Suppression(BaseModel):
    """Hide diagnostics of one code on matching resources.

    Written as ``CODE=Kind name``. ``name`` is either ``namespace/name``
    or a bare name matched in any namespace. ``*`` globs work in the
    code and the name.
    """

    code: str
    kind: str
    name: str

    @classmethod
    def parse(cls, rule: str) -> Suppression:
        code, sep, target = rule.partition("=")
        parts = target.split()
        if not sep or not code.strip() or len(parts) != 2:
            raise ValueError(
                f"Invalid suppression '{rule}' (expected 'CODE=Kind name', "
                "e.g. 'IST0104=Gateway default/my-gateway')"
            )
        return cls(code=code.strip(), kind=parts[0], name=parts[1])

    def matches(self, diagnostic: Diagnostic) -> bool:
        res = diagnostic.resource
        if res is None:
            return False
        if not fnmatchcase(diagnostic.code, self.code):
            return False
        if res.kind != self.kind:
            return False
        target = res.full_name if "/" in self.name else res.name
        return fnmatchcase(target, self.name)

    def __str__(self) -> str:
        return f"{self.code}={self.kind} {self.name}"


class AnalysisConfig(BaseModel):
    """Settings for one analysis run."""

    default_namespace: str = "default"
    suppress: list[Suppression] = Field(default_factory=list)
    failure_threshold: Level = Level.ERROR
    output_threshold: Level = Level.INFO
    disabled_analyzers: list[str] = Field(default_factory=list)
    expand_workload_templates: bool = True

    @field_validator("suppress", mode="before")
    @classmethod
    def _parse_suppressions(cls, value):
        if value is None:
            return []
        return [Suppression.parse(v) if isinstance(v, str) else v for v in value]

    @field_validator("failure_threshold", "output_threshold", mode="before")
    @classmethod
    def _parse_level(cls, value):
        if isinstance(value, str):
            return Level.parse(value)
        return value

    def is_suppressed(self, diagnostic: Diagnostic) -> bool:
        return any(s.matches(diagnostic) for s in self.suppress)
