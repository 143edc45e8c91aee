"""MCP server exposing Framer project and CMS operations."""

__version__ = "0.1.0"
