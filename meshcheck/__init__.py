"""meshcheck — offline analyzer for service-mesh ingress configuration."""

__version__ = "0.1.0"
