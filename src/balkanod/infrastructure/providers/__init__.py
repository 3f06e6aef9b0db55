from .archive_org import ArchiveOrgProvider
from .circuit_breaker import EndpointCircuitBreaker
from .direct_cdn import DirectCdnProvider
from .embedded_player import EmbeddedPlayerProvider
from .hosting_proxy import HostingProxyProvider, ProxyEndpoint

__all__ = [
    "ArchiveOrgProvider",
    "DirectCdnProvider",
    "EmbeddedPlayerProvider",
    "EndpointCircuitBreaker",
    "HostingProxyProvider",
    "ProxyEndpoint",
]
