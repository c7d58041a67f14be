"""HTTP transport for the Supabase REST API."""

from .supabase_client import (
    SupabaseRestClient,
    RestResponse,
    build_headers,
    PREFER_REPRESENTATION,
    PREFER_EXACT_COUNT,
)

__all__ = [
    "SupabaseRestClient",
    "RestResponse",
    "build_headers",
    "PREFER_REPRESENTATION",
    "PREFER_EXACT_COUNT",
]
