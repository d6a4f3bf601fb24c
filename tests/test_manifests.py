"""
Tests for manifest loading — YAML files on disk → typed Snapshot.
"""

import io
from pathlib import Path

import pytest

from meshcheck.core.analysis import collections
from meshcheck.core.config.manifests import (
    ManifestError,
    discover_manifest_files,
    load_snapshot,
    parse_manifest_file,
    parse_manifest_text,
    resource_from_manifest,
)
from meshcheck.core.models import Gateway, Pod, Service
from meshcheck.core.models.config import AnalysisConfig

GATEWAY_YAML = """\
apiVersion: networking.istio.io/v1beta1
kind: Gateway
metadata:
  name: web-gw
  namespace: web
spec:
  selector:
    app: edge
  servers:
    - port:
        number: 443
        name: https
        protocol: HTTPS
      hosts: ["*.example.com"]
    - hosts: ["no-port.example.com"]
"""

SERVICE_YAML = """\
apiVersion: v1
kind: Service
metadata:
  name: edge
spec:
  selector:
    app: edge
  ports:
    - port: 443
      targetPort: 8443
    - port: 53
      protocol: UDP
"""

POD_YAML = """\
apiVersion: v1
kind: Pod
metadata:
  name: edge-0
  labels:
    app: edge
spec:
  containers:
    - name: proxy
      image: proxy:1.0
"""

DEPLOYMENT_YAML = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: edge
  namespace: ingress
spec:
  selector:
    matchLabels:
      app: edge
  template:
    metadata:
      labels:
        app: edge
        version: v2
    spec:
      containers:
        - name: proxy
          image: proxy:2.0
"""


# ═══════════════════════════════════════════════════════════════════
#  Parsing
# ═══════════════════════════════════════════════════════════════════


class TestParseManifest:
    def test_multi_document(self):
        docs = parse_manifest_text(GATEWAY_YAML + "---\n" + SERVICE_YAML, "x.yaml")
        assert [d["kind"] for d in docs] == ["Gateway", "Service"]

    def test_skips_empty_and_scalar_documents(self):
        docs = parse_manifest_text("---\n---\njust a string\n---\n" + POD_YAML, "x.yaml")
        assert [d["kind"] for d in docs] == ["Pod"]

    def test_flattens_list(self):
        content = """\
apiVersion: v1
kind: List
items:
  - apiVersion: v1
    kind: Pod
    metadata: {name: a}
  - apiVersion: v1
    kind: Pod
    metadata: {name: b}
"""
        docs = parse_manifest_text(content, "x.yaml")
        assert [d["metadata"]["name"] for d in docs] == ["a", "b"]

    def test_invalid_yaml(self):
        with pytest.raises(ManifestError, match="invalid YAML") as exc:
            parse_manifest_text("key: [unclosed", "bad.yaml")
        assert exc.value.origin == "bad.yaml"
        assert exc.value.documents == []

    def test_invalid_yaml_keeps_earlier_documents(self):
        content = POD_YAML + "---\n" + SERVICE_YAML + "---\nkey: [unclosed\n"
        with pytest.raises(ManifestError, match="invalid YAML in document 3") as exc:
            parse_manifest_text(content, "mixed.yaml")
        assert [d["kind"] for d in exc.value.documents] == ["Pod", "Service"]

    def test_unreadable_file(self, tmp_path: Path):
        with pytest.raises(ManifestError, match="cannot read"):
            parse_manifest_file(tmp_path / "missing.yaml")


# ═══════════════════════════════════════════════════════════════════
#  Typed conversion
# ═══════════════════════════════════════════════════════════════════


class TestResourceFromManifest:
    def test_gateway(self):
        doc = parse_manifest_text(GATEWAY_YAML, "gw.yaml")[0]
        gw = resource_from_manifest(doc, origin="gw.yaml:1")
        assert isinstance(gw, Gateway)
        assert gw.full_name == "web/web-gw"
        assert gw.spec.selector == {"app": "edge"}
        assert gw.spec.servers[0].port.number == 443
        assert gw.spec.servers[1].port is None
        assert gw.metadata.origin == "gw.yaml:1"

    @pytest.mark.parametrize("version", ["v1alpha3", "v1beta1", "v1"])
    def test_gateway_api_versions(self, version):
        doc = {"apiVersion": f"networking.istio.io/{version}", "kind": "Gateway", "metadata": {"name": "g"}}
        assert isinstance(resource_from_manifest(doc), Gateway)

    def test_kubernetes_gateway_api_ignored(self):
        doc = {"apiVersion": "gateway.networking.k8s.io/v1", "kind": "Gateway", "metadata": {"name": "g"}}
        assert resource_from_manifest(doc) is None

    def test_service_defaults(self):
        doc = parse_manifest_text(SERVICE_YAML, "svc.yaml")[0]
        svc = resource_from_manifest(doc, default_namespace="team")
        assert isinstance(svc, Service)
        assert svc.namespace == "team"
        assert [(p.port, p.protocol) for p in svc.spec.ports] == [(443, "TCP"), (53, "UDP")]
        assert svc.spec.ports[0].target_port == 8443

    def test_pod(self):
        doc = parse_manifest_text(POD_YAML, "pod.yaml")[0]
        pod = resource_from_manifest(doc)
        assert isinstance(pod, Pod)
        assert pod.labels == {"app": "edge"}
        assert pod.namespace == "default"

    def test_deployment_template_becomes_pod(self):
        doc = parse_manifest_text(DEPLOYMENT_YAML, "d.yaml")[0]
        pod = resource_from_manifest(doc)
        assert isinstance(pod, Pod)
        assert pod.full_name == "ingress/edge"
        assert pod.labels == {"app": "edge", "version": "v2"}

    def test_deployment_ignored_without_expansion(self):
        doc = parse_manifest_text(DEPLOYMENT_YAML, "d.yaml")[0]
        assert resource_from_manifest(doc, expand_templates=False) is None

    def test_unrelated_kind_ignored(self):
        doc = {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "c"}}
        assert resource_from_manifest(doc) is None

    def test_missing_kind_ignored(self):
        assert resource_from_manifest({"metadata": {"name": "x"}}) is None

    def test_null_fields_tolerated(self):
        doc = {"apiVersion": "v1", "kind": "Service", "metadata": {"name": "s", "labels": None},
               "spec": {"selector": None, "ports": None}}
        svc = resource_from_manifest(doc)
        assert svc.spec.selector == {}
        assert svc.spec.ports == []

    def test_invalid_fields_raise(self):
        doc = {"apiVersion": "v1", "kind": "Service", "metadata": {"name": "s"},
               "spec": {"ports": [{"port": "not-a-number"}]}}
        with pytest.raises(ManifestError, match="invalid Service/s"):
            resource_from_manifest(doc, origin="svc.yaml:1")

    def test_bad_metadata_raises(self):
        doc = {"apiVersion": "v1", "kind": "Pod", "metadata": ["not", "a", "map"]}
        with pytest.raises(ManifestError, match="metadata must be a mapping"):
            resource_from_manifest(doc)


# ═══════════════════════════════════════════════════════════════════
#  Discovery & snapshot
# ═══════════════════════════════════════════════════════════════════


class TestDiscover:
    def test_directory_yaml_only(self, write_manifest, manifest_dir: Path):
        write_manifest("b.yaml", POD_YAML)
        write_manifest("a.yml", SERVICE_YAML)
        write_manifest("notes.txt", "hello")
        files, errors = discover_manifest_files([manifest_dir])
        assert [f.name for f in files] == ["a.yml", "b.yaml"]
        assert errors == []

    def test_recursive(self, write_manifest, manifest_dir: Path):
        write_manifest("top.yaml", POD_YAML)
        write_manifest("sub/inner.yaml", POD_YAML)
        write_manifest(".git/ignored.yaml", POD_YAML)
        files, _ = discover_manifest_files([manifest_dir])
        assert sorted(f.name for f in files) == ["inner.yaml", "top.yaml"]
        files, _ = discover_manifest_files([manifest_dir], recursive=False)
        assert [f.name for f in files] == ["top.yaml"]

    def test_explicit_file_any_suffix(self, write_manifest):
        path = write_manifest("manifest.txt", POD_YAML)
        files, _ = discover_manifest_files([path])
        assert files == [path]

    def test_deduplicates(self, write_manifest, manifest_dir: Path):
        path = write_manifest("pod.yaml", POD_YAML)
        files, _ = discover_manifest_files([path, manifest_dir])
        assert len(files) == 1

    def test_missing_path(self, tmp_path: Path):
        files, errors = discover_manifest_files([tmp_path / "nope"])
        assert files == []
        assert "no such file" in errors[0].message


class TestLoadSnapshot:
    def test_loads_all_kinds(self, write_manifest, manifest_dir: Path):
        write_manifest("gw.yaml", GATEWAY_YAML)
        write_manifest("svc.yaml", SERVICE_YAML + "---\n" + POD_YAML)
        result = load_snapshot([manifest_dir])
        snap = result.snapshot
        assert snap.count(collections.GATEWAYS) == 1
        assert snap.count(collections.SERVICES) == 1
        assert snap.count(collections.PODS) == 1
        assert len(result.files) == 2
        assert result.errors == []

    def test_origin_has_document_index(self, write_manifest, manifest_dir: Path):
        path = write_manifest("svc.yaml", SERVICE_YAML + "---\n" + POD_YAML)
        snap = load_snapshot([path]).snapshot
        pod = snap.items(collections.PODS)[0]
        assert pod.metadata.origin == f"{path}:2"

    def test_bad_file_does_not_stop_others(self, write_manifest, manifest_dir: Path):
        write_manifest("bad.yaml", "key: [unclosed")
        write_manifest("good.yaml", POD_YAML)
        result = load_snapshot([manifest_dir])
        assert len(result.snapshot) == 1
        assert len(result.errors) == 1
        assert result.errors[0].origin.endswith("bad.yaml")

    def test_bad_document_does_not_stop_file(self, write_manifest, manifest_dir: Path):
        write_manifest("mixed.yaml", """\
apiVersion: v1
kind: Service
metadata: {name: broken}
spec:
  ports:
    - port: nope
---
""" + POD_YAML)
        result = load_snapshot([manifest_dir])
        assert result.snapshot.count(collections.PODS) == 1
        assert result.errors[0].origin.endswith("mixed.yaml:1")

    def test_broken_yaml_keeps_earlier_documents(self, write_manifest, manifest_dir: Path):
        path = write_manifest(
            "stack.yaml",
            GATEWAY_YAML + "---\n" + POD_YAML + "---\n" + SERVICE_YAML + "---\nkey: [unclosed\n",
        )
        result = load_snapshot([manifest_dir])
        snap = result.snapshot
        assert snap.count(collections.GATEWAYS) == 1
        assert snap.count(collections.PODS) == 1
        assert snap.count(collections.SERVICES) == 1
        assert result.files == [str(path)]
        assert len(result.errors) == 1
        assert result.errors[0].origin == str(path)
        assert "invalid YAML in document 4" in result.errors[0].message
        assert result.documents == 3

    def test_skipped_counted(self, write_manifest, manifest_dir: Path):
        write_manifest("cm.yaml", "apiVersion: v1\nkind: ConfigMap\nmetadata: {name: c}\n")
        result = load_snapshot([manifest_dir])
        assert result.skipped == 1
        assert len(result.snapshot) == 0

    def test_default_namespace_from_config(self, write_manifest, manifest_dir: Path):
        write_manifest("pod.yaml", POD_YAML)
        result = load_snapshot([manifest_dir], config=AnalysisConfig(default_namespace="team"))
        assert result.snapshot.items(collections.PODS)[0].namespace == "team"

    def test_stdin(self):
        result = load_snapshot(["-"], stdin=io.StringIO(POD_YAML))
        assert result.files == ["<stdin>"]
        assert result.snapshot.items(collections.PODS)[0].metadata.origin == "<stdin>:1"
