"""
Label selectors — equality-based matching as Kubernetes defines it.

The gateway analyzer receives a ``SelectorMatcher`` at construction so
tests (or a richer selector library) can stand in for ``labels_match``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

SelectorMatcher = Callable[[Mapping[str, str], Mapping[str, str]], bool]


def labels_match(selector: Mapping[str, str], labels: Mapping[str, str]) -> bool:
    """Check if all selector key-value pairs are present in labels.

    An empty selector matches everything.
    """
    if not selector:
        return True
    return all(k in labels and labels[k] == v for k, v in selector.items())


def selector_string(selector: Mapping[str, str]) -> str:
    """Render a selector the way Kubernetes prints one: ``a=1,b=2``, sorted by key."""
    return ",".join(f"{k}={selector[k]}" for k in sorted(selector))
