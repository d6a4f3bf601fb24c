"""
Resource models — typed views of the manifests analyzers read.

Each kind gets its own model, resolved once when a manifest is loaded,
so analyzers work on concrete fields instead of raw YAML dicts.
Unknown YAML fields are ignored.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from meshcheck.core.analysis import collections


class ObjectMeta(BaseModel):
    """The subset of Kubernetes object metadata analyzers care about."""

    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    origin: str = ""   # "<file>:<doc index>", informational only

    @property
    def full_name(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


class ResourceRef(BaseModel):
    """Identity of the resource a diagnostic is attached to."""

    kind: str
    namespace: str = ""
    name: str = ""
    origin: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name

    def __str__(self) -> str:
        return f"{self.kind} {self.full_name}"


# ── Istio Gateway ───────────────────────────────────────────────


class Port(BaseModel):
    """A gateway listener port. ``number`` may be absent."""

    number: int | None = None
    name: str = ""
    protocol: str = ""


class Server(BaseModel):
    """One listener entry of a Gateway."""

    port: Port | None = None
    hosts: list[str] = Field(default_factory=list)


class GatewaySpec(BaseModel):
    selector: dict[str, str] = Field(default_factory=dict)
    servers: list[Server] = Field(default_factory=list)


# ── Kubernetes Service ──────────────────────────────────────────


class ServicePort(BaseModel):
    """An exposed Service port.

    ``protocol`` defaults to TCP, as the Kubernetes API server does
    when the field is omitted.
    """

    model_config = ConfigDict(populate_by_name=True)

    port: int
    protocol: str = "TCP"
    name: str = ""
    target_port: int | str | None = Field(default=None, alias="targetPort")


class ServiceSpec(BaseModel):
    selector: dict[str, str] = Field(default_factory=dict)
    ports: list[ServicePort] = Field(default_factory=list)


# ── Resources ───────────────────────────────────────────────────


class Resource(BaseModel):
    """Base for every typed resource held in a snapshot."""

    kind: ClassVar[str] = ""
    collection: ClassVar[str] = ""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def full_name(self) -> str:
        return self.metadata.full_name

    def ref(self) -> ResourceRef:
        """Build the reference used when reporting on this resource."""
        return ResourceRef(
            kind=self.kind,
            namespace=self.metadata.namespace,
            name=self.metadata.name,
            origin=self.metadata.origin,
        )


class Gateway(Resource):
    """An Istio ingress/egress Gateway."""

    kind: ClassVar[str] = "Gateway"
    collection: ClassVar[str] = collections.GATEWAYS

    spec: GatewaySpec = Field(default_factory=GatewaySpec)


class Pod(Resource):
    """A workload instance, identified by namespace and labels."""

    kind: ClassVar[str] = "Pod"
    collection: ClassVar[str] = collections.PODS

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.labels


class Service(Resource):
    """A Kubernetes Service selecting pods in its own namespace."""

    kind: ClassVar[str] = "Service"
    collection: ClassVar[str] = collections.SERVICES

    spec: ServiceSpec = Field(default_factory=ServiceSpec)


RESOURCE_TYPES: dict[str, type[Resource]] = {
    cls.collection: cls for cls in (Gateway, Pod, Service)
}
