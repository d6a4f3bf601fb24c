"""
Ingress gateway port analyzer.

Checks that every port a Gateway listens on is exposed by at least one
Service selecting the gateway's workload pods. A listener on a port no
Service exposes silently drops traffic.
"""

from __future__ import annotations

import logging
from types import MappingProxyType

from meshcheck.core.analysis import collections
from meshcheck.core.analysis.base import Analyzer, Context, Metadata
from meshcheck.core.analysis.labels import SelectorMatcher, labels_match, selector_string
from meshcheck.core.models.diagnostic import (
    gateway_port_not_on_workload,
    referenced_resource_not_found,
)
from meshcheck.core.models.resources import Gateway, Pod, Resource, Service

logger = logging.getLogger(__name__)

# Ports of the istio-ingressgateway Service shipped with the default
# install. Used only when a Gateway selects the system ingress gateway
# and its Service is not part of the analyzed resources.
DEFAULT_INGRESS_GATEWAY_PORTS = frozenset({80, 443, 31400, 15443})

SYSTEM_INGRESS_SELECTOR = MappingProxyType({"istio": "ingressgateway"})


class IngressGatewayPortAnalyzer(Analyzer):
    """Checks a gateway's ports against the gateway's Kubernetes service ports."""

    def __init__(self, matcher: SelectorMatcher = labels_match):
        self._matches = matcher

    @property
    def metadata(self) -> Metadata:
        return Metadata(
            name="gateway.IngressGatewayPortAnalyzer",
            description="Checks a gateway's ports against the gateway's Kubernetes service ports",
            inputs=[collections.GATEWAYS, collections.PODS, collections.SERVICES],
        )

    def analyze(self, context: Context) -> None:
        pods: list[Pod] = []
        services_by_ns: dict[str, list[Service]] = {}

        def _collect_pod(res: Resource) -> bool:
            pods.append(res)
            return True

        def _collect_service(res: Resource) -> bool:
            services_by_ns.setdefault(res.namespace, []).append(res)
            return True

        context.for_each(collections.PODS, _collect_pod)
        context.for_each(collections.SERVICES, _collect_service)

        def _visit_gateway(res: Resource) -> bool:
            self._analyze_gateway(res, pods, services_by_ns, context)
            return True

        context.for_each(collections.GATEWAYS, _visit_gateway)

    def _analyze_gateway(
        self,
        gw: Gateway,
        pods: list[Pod],
        services_by_ns: dict[str, list[Service]],
        context: Context,
    ) -> None:
        selector = gw.spec.selector
        selector_text = selector_string(selector)

        # Several Services may select the same gateway pods with different
        # port sets; a port counts as exposed if *any* of them exposes it.
        service_ports: set[int] | frozenset[int] = set()
        selector_matches = 0

        for pod in pods:
            if not self._matches(selector, pod.labels):
                continue
            selector_matches += 1
            # Services only select pods in their own namespace
            for svc in services_by_ns.get(pod.namespace, ()):
                if not self._matches(svc.spec.selector, pod.labels):
                    continue
                for port in svc.spec.ports:
                    if port.protocol == "TCP":
                        service_ports.add(port.port)

        if selector_matches == 0:
            # Only the exact single-key system selector falls back. A system
            # gateway carrying extra selector keys is reported as missing.
            if selector != SYSTEM_INGRESS_SELECTOR:
                context.report(
                    collections.GATEWAYS,
                    referenced_resource_not_found(gw.ref(), "selector", selector_text),
                )
                return
            logger.debug(
                "Gateway %s selects the system ingress gateway, which is not loaded; "
                "assuming default ports %s",
                gw.full_name, sorted(DEFAULT_INGRESS_GATEWAY_PORTS),
            )
            service_ports = DEFAULT_INGRESS_GATEWAY_PORTS

        logger.debug(
            "Gateway %s: %d matching pod(s), service ports %s",
            gw.full_name, selector_matches, sorted(service_ports),
        )

        for server in gw.spec.servers:
            if server.port is None or server.port.number is None:
                continue
            if server.port.number not in service_ports:
                context.report(
                    collections.GATEWAYS,
                    gateway_port_not_on_workload(gw.ref(), selector_text, server.port.number),
                )
