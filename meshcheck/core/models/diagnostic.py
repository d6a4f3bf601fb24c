"""
Diagnostic model — structured findings reported by analyzers.

A diagnostic is a message type (code, level, template) bound to the
resource it was found on plus the template parameters. Findings are
values, never exceptions: reporting one does not stop an analysis pass.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from meshcheck.core.models.resources import ResourceRef


class Level(str, Enum):
    """Diagnostic severity."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return _LEVEL_RANK[self]

    def at_least(self, other: Level) -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: str | Level) -> Level:
        """Case-insensitive lookup by name ("warning", "Warn", "ERROR")."""
        if isinstance(value, Level):
            return value
        level = _LEVEL_NAMES.get(value.strip().lower())
        if level is None:
            raise ValueError(f"Unknown level '{value}' (expected Error, Warning or Info)")
        return level


_LEVEL_RANK = {Level.INFO: 0, Level.WARNING: 1, Level.ERROR: 2}

_LEVEL_NAMES = {
    "error": Level.ERROR,
    "warning": Level.WARNING,
    "warn": Level.WARNING,
    "info": Level.INFO,
}


class MessageType(BaseModel):
    """A kind of finding: stable code, name, level and text template."""

    code: str
    name: str
    level: Level
    template: str

    def render(self, params: list[Any]) -> str:
        return self.template.format(*params)


# ── Catalog ─────────────────────────────────────────────────────

INTERNAL_ERROR = MessageType(
    code="IST0001",
    name="InternalError",
    level=Level.ERROR,
    template="Internal error: {0}",
)

REFERENCED_RESOURCE_NOT_FOUND = MessageType(
    code="IST0101",
    name="ReferencedResourceNotFound",
    level=Level.ERROR,
    template='Referenced {0} not found: "{1}"',
)

GATEWAY_PORT_NOT_ON_WORKLOAD = MessageType(
    code="IST0104",
    name="GatewayPortNotOnWorkload",
    level=Level.WARNING,
    template=(
        "The gateway refers to a port that is not exposed on the workload "
        "(pod selector {0}; port {1})"
    ),
)

MESSAGE_TYPES: dict[str, MessageType] = {
    t.code: t
    for t in (INTERNAL_ERROR, REFERENCED_RESOURCE_NOT_FOUND, GATEWAY_PORT_NOT_ON_WORKLOAD)
}


class Diagnostic(BaseModel):
    """One finding attached to one resource."""

    type: MessageType
    resource: ResourceRef | None = None
    params: list[Any] = Field(default_factory=list)

    @property
    def code(self) -> str:
        return self.type.code

    @property
    def level(self) -> Level:
        return self.type.level

    @property
    def message(self) -> str:
        return self.type.render(self.params)

    def sort_key(self) -> tuple:
        res = self.resource
        return (
            res.full_name if res else "",
            res.kind if res else "",
            self.type.code,
            self.message,
        )

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "code": self.type.code,
            "name": self.type.name,
            "level": self.type.level.value,
            "message": self.message,
            "resource": str(self.resource) if self.resource else None,
            "origin": self.resource.origin if self.resource else None,
        }

    def __str__(self) -> str:
        where = f" ({self.resource})" if self.resource else ""
        return f"{self.level.value} [{self.code}]{where} {self.message}"


def referenced_resource_not_found(
    resource: ResourceRef, ref_type: str, ref_name: str,
) -> Diagnostic:
    return Diagnostic(
        type=REFERENCED_RESOURCE_NOT_FOUND,
        resource=resource,
        params=[ref_type, ref_name],
    )


def gateway_port_not_on_workload(
    resource: ResourceRef, selector: str, port: int,
) -> Diagnostic:
    return Diagnostic(
        type=GATEWAY_PORT_NOT_ON_WORKLOAD,
        resource=resource,
        params=[selector, port],
    )


def internal_error(detail: str, resource: ResourceRef | None = None) -> Diagnostic:
    return Diagnostic(type=INTERNAL_ERROR, resource=resource, params=[detail])
