"""
Domain models — Pydantic types for resources and diagnostics.

All models are re-exported here for convenient access:

    from meshcheck.core.models import Gateway, Pod, Service, Diagnostic, Level
"""

from meshcheck.core.models.diagnostic import (
    GATEWAY_PORT_NOT_ON_WORKLOAD,
    INTERNAL_ERROR,
    MESSAGE_TYPES,
    REFERENCED_RESOURCE_NOT_FOUND,
    Diagnostic,
    Level,
    MessageType,
)
from meshcheck.core.models.resources import (
    Gateway,
    GatewaySpec,
    ObjectMeta,
    Pod,
    Port,
    Resource,
    ResourceRef,
    Server,
    Service,
    ServicePort,
    ServiceSpec,
)

__all__ = [
    # diagnostic.py
    "Diagnostic",
    "GATEWAY_PORT_NOT_ON_WORKLOAD",
    "INTERNAL_ERROR",
    "Level",
    "MESSAGE_TYPES",
    "MessageType",
    "REFERENCED_RESOURCE_NOT_FOUND",
    # resources.py
    "Gateway",
    "GatewaySpec",
    "ObjectMeta",
    "Pod",
    "Port",
    "Resource",
    "ResourceRef",
    "Server",
    "Service",
    "ServicePort",
    "ServiceSpec",
]
