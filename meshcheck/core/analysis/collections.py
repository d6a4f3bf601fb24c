"""
Collection names — identifiers for the resource kinds analyzers consume.

An analyzer declares the collections it reads in its metadata so the
host knows which kinds to load before running it.
"""

from __future__ import annotations

GATEWAYS = "istio/networking/v1alpha3/gateways"
PODS = "k8s/core/v1/pods"
SERVICES = "k8s/core/v1/services"

ALL = (GATEWAYS, PODS, SERVICES)

# Istio networking API versions that define Gateway
_GATEWAY_API_VERSIONS = frozenset({
    "networking.istio.io/v1alpha3",
    "networking.istio.io/v1beta1",
    "networking.istio.io/v1",
})

# Controllers whose pod template stands in for live pods
WORKLOAD_TEMPLATE_KINDS = frozenset({
    "Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job",
})


def collection_for(api_version: str, kind: str) -> str | None:
    """Map a manifest's apiVersion/kind to the collection it belongs to."""
    if kind == "Gateway" and api_version in _GATEWAY_API_VERSIONS:
        return GATEWAYS
    if api_version == "v1" and kind == "Pod":
        return PODS
    if api_version == "v1" and kind == "Service":
        return SERVICES
    return None
