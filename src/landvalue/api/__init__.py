"""Backend access: HTTP client and response normalization.

Main Components:
    - ApiClient: async client for the nearby, search, valuation and scrape endpoints
    - normalizer: shape-tolerant decoding of backend payloads

Example usage:
    from landvalue.api import ApiClient

    async with ApiClient() as client:
        batch = await client.fetch_nearby(position, radius=5000)
"""

from .client import ApiClient, EndpointStatus
from .normalizer import (
    LIST_STRATEGIES,
    decode_properties,
    decode_property,
    extract_records,
    normalize_property_list,
    normalize_search,
    normalize_valuation,
)

__all__ = [
    "ApiClient",
    "EndpointStatus",
    "LIST_STRATEGIES",
    "decode_property",
    "decode_properties",
    "extract_records",
    "normalize_property_list",
    "normalize_search",
    "normalize_valuation",
]
