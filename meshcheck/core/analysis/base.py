"""
Analyzer base — the contract between the analysis host and each rule.

An analyzer only sees the world through a ``Context``: it iterates
resources of the collections it declared, and reports diagnostics.
It never loads files, never mutates resources, and never raises for a
misconfiguration it finds — that is what diagnostics are for.

To create a new analyzer:
    1. Subclass Analyzer
    2. Implement metadata and analyze
    3. Register it in the AnalyzerRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from pydantic import BaseModel, Field

from meshcheck.core.models.diagnostic import Diagnostic
from meshcheck.core.models.resources import Resource

# Return True to keep iterating, False to stop.
Visitor = Callable[[Resource], bool]


class Metadata(BaseModel):
    """What an analyzer is called and which collections it reads."""

    name: str
    description: str = ""
    inputs: list[str] = Field(default_factory=list)


class Context(ABC):
    """The analyzer's view of one analysis pass."""

    @abstractmethod
    def for_each(self, collection: str, visitor: Visitor) -> None:
        """Call ``visitor`` once per resource in ``collection``, in stable order.

        Stops early when the visitor returns a falsy value.
        """

    @abstractmethod
    def report(self, collection: str, diagnostic: Diagnostic) -> None:
        """Attach a diagnostic to the current pass. Never fails."""


class Analyzer(ABC):
    """Abstract base class for all analyzers."""

    @property
    @abstractmethod
    def metadata(self) -> Metadata:
        """Name, description and input collections."""

    @abstractmethod
    def analyze(self, context: Context) -> None:
        """Inspect the snapshot through ``context`` and report findings."""

    @property
    def name(self) -> str:
        return self.metadata.name

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
