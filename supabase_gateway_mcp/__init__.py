"""Supabase Gateway MCP server: tool calls translated to PostgREST requests."""

__version__ = "2.0.0"
