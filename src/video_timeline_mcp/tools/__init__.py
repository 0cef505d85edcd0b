"""MCP tool sub-servers, mounted by ``server.py``."""
