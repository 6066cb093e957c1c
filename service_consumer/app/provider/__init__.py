"""
Provider-facing building blocks: address resolution, transport, body decoding.
"""

from .resolver import ProviderReference, parse_provider_reference, authorization_url
from .responses import ParsedBody, ParseFailure, ProviderBody, decode_body
from .transport import TransportClient, TransportResponse

__all__ = [
    "ProviderReference",
    "parse_provider_reference",
    "authorization_url",
    "ParsedBody",
    "ParseFailure",
    "ProviderBody",
    "decode_body",
    "TransportClient",
    "TransportResponse",
]
