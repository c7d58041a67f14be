"""Configuration for the Supabase Gateway MCP server."""

from .settings import ServerConfig, SERVICE_NAME, SERVICE_VERSION

__all__ = ["ServerConfig", "SERVICE_NAME", "SERVICE_VERSION"]
