"""
Self-healing resolution of UI elements and API endpoints.
"""

from .ledger import FAILED, TIER_NAMES, HealingLedger, HealingStats
from .surface import ElementHandle, UISurface
from .element_resolver import ELEMENT_TIERS, ElementResolution, ElementResolver
from .transport import AioHttpTransport, HttpResponse, HttpTransport
from .endpoint_resolver import ENDPOINT_TIERS, EndpointResolution, EndpointResolver, pluralize_endpoint

__all__ = [
    "FAILED",
    "TIER_NAMES",
    "HealingLedger",
    "HealingStats",
    "ElementHandle",
    "UISurface",
    "ELEMENT_TIERS",
    "ElementResolution",
    "ElementResolver",
    "AioHttpTransport",
    "HttpResponse",
    "HttpTransport",
    "ENDPOINT_TIERS",
    "EndpointResolution",
    "EndpointResolver",
    "pluralize_endpoint",
]
