"""
Manifest loading — YAML files on disk into a typed ``Snapshot``.

Discovery walks the given paths for ``*.yaml`` / ``*.yml`` files, each
file is parsed as a multi-document YAML stream, and every document of
a kind some analyzer consumes is converted to its typed resource
model. A bad file or document is recorded as a ``LoadError`` and the
rest still loads.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

import yaml
from pydantic import ValidationError

from meshcheck.core.analysis import collections
from meshcheck.core.analysis.context import Snapshot
from meshcheck.core.models.config import AnalysisConfig
from meshcheck.core.models.resources import RESOURCE_TYPES, ObjectMeta, Pod, Resource

logger = logging.getLogger(__name__)

_SKIP_DIRS = frozenset({
    ".git", ".venv", "venv", "node_modules", "__pycache__",
    ".mypy_cache", ".ruff_cache", ".pytest_cache", ".tox",
    "dist", "build", ".eggs",
})

_MANIFEST_SUFFIXES = (".yaml", ".yml")

_TEMPLATE_API_VERSIONS = frozenset({"apps/v1", "batch/v1"})

STDIN = "-"


class ManifestError(Exception):
    """Raised when a manifest file or document cannot be loaded.

    ``documents`` holds whatever parsed cleanly before a YAML stream
    broke, so callers can keep loading them.
    """

    def __init__(self, origin: str, message: str, documents: list[dict] | None = None):
        super().__init__(f"{origin}: {message}")
        self.origin = origin
        self.message = message
        self.documents = documents or []


@dataclass
class LoadError:
    """A file or document that could not be loaded."""

    origin: str
    message: str

    def to_dict(self) -> dict:
        return {"origin": self.origin, "message": self.message}

    def __str__(self) -> str:
        return f"{self.origin}: {self.message}"


@dataclass
class LoadResult:
    """Everything loaded for one run."""

    snapshot: Snapshot = field(default_factory=Snapshot)
    files: list[str] = field(default_factory=list)
    errors: list[LoadError] = field(default_factory=list)
    documents: int = 0
    skipped: int = 0


# ═══════════════════════════════════════════════════════════════════
#  Discovery & parsing
# ═══════════════════════════════════════════════════════════════════


def discover_manifest_files(
    paths: Iterable[str | Path],
    recursive: bool = True,
) -> tuple[list[Path], list[LoadError]]:
    """Expand files and directories into the list of manifest files.

    Files named explicitly are taken whatever their suffix. Directories
    contribute their ``*.yaml`` / ``*.yml`` files in sorted order.
    """
    files: list[Path] = []
    errors: list[LoadError] = []
    seen: set[Path] = set()

    def _add(p: Path) -> None:
        key = p.resolve()
        if key not in seen:
            seen.add(key)
            files.append(p)

    for raw in paths:
        path = Path(raw)
        if path.is_file():
            _add(path)
        elif path.is_dir():
            for found in _walk_dir(path, recursive):
                _add(found)
        else:
            errors.append(LoadError(origin=str(path), message="no such file or directory"))

    return files, errors


def _walk_dir(directory: Path, recursive: bool) -> list[Path]:
    found: list[Path] = []
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if recursive and entry.name not in _SKIP_DIRS:
                found.extend(_walk_dir(entry, recursive))
        elif entry.suffix in _MANIFEST_SUFFIXES:
            found.append(entry)
    return found


def parse_manifest_text(content: str, origin: str) -> list[dict]:
    """Parse a YAML stream into mapping documents.

    ``kind: List`` documents are flattened into their items. Empty and
    non-mapping documents are dropped.

    Raises:
        ManifestError: If the stream is not valid YAML. Documents before
            the broken one are attached as ``documents``.
    """
    docs: list[dict] = []
    position = 0
    try:
        for position, doc in enumerate(yaml.safe_load_all(content), start=1):
            if not isinstance(doc, dict):
                continue
            if doc.get("kind") == "List" and isinstance(doc.get("items"), list):
                docs.extend(item for item in doc["items"] if isinstance(item, dict))
            else:
                docs.append(doc)
    except yaml.YAMLError as e:
        raise ManifestError(
            origin, f"invalid YAML in document {position + 1}: {e}", documents=docs,
        ) from e
    return docs


def parse_manifest_file(path: Path) -> list[dict]:
    """Read and parse one manifest file.

    Raises:
        ManifestError: If the file can't be read or isn't valid YAML.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(str(path), f"cannot read: {e}") from e
    return parse_manifest_text(content, str(path))


# ═══════════════════════════════════════════════════════════════════
#  Typed conversion
# ═══════════════════════════════════════════════════════════════════


def _drop_nulls(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


def resource_from_manifest(
    doc: dict,
    default_namespace: str = "default",
    origin: str = "",
    expand_templates: bool = True,
) -> Resource | None:
    """Convert one parsed manifest document to its typed resource.

    Returns None for kinds no analyzer reads. Controllers with a pod
    template (Deployment, StatefulSet, ...) become a ``Pod`` carrying the
    template labels when ``expand_templates`` is set.

    Raises:
        ManifestError: If the document has the right kind but invalid fields.
    """
    kind = doc.get("kind")
    api_version = doc.get("apiVersion")
    if not isinstance(kind, str) or not isinstance(api_version, str):
        return None

    meta = doc.get("metadata") or {}
    if not isinstance(meta, dict):
        raise ManifestError(origin, f"{kind}: metadata must be a mapping")
    name = meta.get("name") or ""

    collection = collections.collection_for(api_version, kind)
    try:
        if collection is None:
            if (
                expand_templates
                and kind in collections.WORKLOAD_TEMPLATE_KINDS
                and api_version in _TEMPLATE_API_VERSIONS
            ):
                return _pod_from_template(doc, meta, default_namespace, origin)
            return None

        metadata = ObjectMeta.model_validate(_drop_nulls({
            "name": name,
            "namespace": meta.get("namespace") or default_namespace,
            "labels": meta.get("labels"),
            "origin": origin,
        }))
        payload: dict = {"metadata": metadata}
        if collection != collections.PODS:
            spec = doc.get("spec") or {}
            if not isinstance(spec, dict):
                raise ManifestError(origin, f"{kind}/{name}: spec must be a mapping")
            payload["spec"] = _drop_nulls(spec)
        return RESOURCE_TYPES[collection].model_validate(payload)
    except ValidationError as e:
        raise ManifestError(origin, f"invalid {kind}/{name}: {e}") from e


def _pod_from_template(
    doc: dict, meta: dict, default_namespace: str, origin: str,
) -> Pod | None:
    spec = doc.get("spec") or {}
    template = spec.get("template") if isinstance(spec, dict) else None
    if not isinstance(template, dict):
        return None
    tmeta = template.get("metadata") or {}
    labels = tmeta.get("labels") if isinstance(tmeta, dict) else None
    return Pod(metadata=ObjectMeta.model_validate(_drop_nulls({
        "name": meta.get("name") or "",
        "namespace": meta.get("namespace") or default_namespace,
        "labels": labels,
        "origin": origin,
    })))


# ═══════════════════════════════════════════════════════════════════
#  Snapshot assembly
# ═══════════════════════════════════════════════════════════════════


def load_snapshot(
    paths: Iterable[str | Path],
    config: AnalysisConfig | None = None,
    recursive: bool = True,
    stdin: TextIO | None = None,
) -> LoadResult:
    """Load every manifest under ``paths`` into one snapshot.

    ``-`` reads a YAML stream from stdin.
    """
    config = config or AnalysisConfig()
    result = LoadResult()

    path_list = [str(p) for p in paths]
    sources: list[tuple[str, Path | None]] = []
    if STDIN in path_list:
        sources.append(("<stdin>", None))
    files, errors = discover_manifest_files(
        [p for p in path_list if p != STDIN], recursive=recursive,
    )
    result.errors.extend(errors)
    sources.extend((str(f), f) for f in files)

    for origin, path in sources:
        try:
            if path is None:
                docs = parse_manifest_text((stdin or sys.stdin).read(), origin)
            else:
                docs = parse_manifest_file(path)
        except ManifestError as e:
            logger.warning("%s", e)
            result.errors.append(LoadError(origin=e.origin, message=e.message))
            if not e.documents:
                continue
            docs = e.documents

        result.files.append(origin)
        for index, doc in enumerate(docs, start=1):
            result.documents += 1
            doc_origin = f"{origin}:{index}"
            try:
                resource = resource_from_manifest(
                    doc,
                    default_namespace=config.default_namespace,
                    origin=doc_origin,
                    expand_templates=config.expand_workload_templates,
                )
            except ManifestError as e:
                logger.warning("%s", e)
                result.errors.append(LoadError(origin=e.origin, message=e.message))
                continue
            if resource is None:
                result.skipped += 1
                logger.debug("Skipping %s (%s)", doc_origin, doc.get("kind", "?"))
                continue
            result.snapshot.add(resource)

    logger.info(
        "Loaded %d resource(s) from %d document(s) in %d file(s), %d skipped",
        len(result.snapshot), result.documents, len(result.files), result.skipped,
    )
    return result
