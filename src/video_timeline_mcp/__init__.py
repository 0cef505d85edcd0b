"""Timeline engine for narrated explainer videos, served over MCP."""

__version__ = "0.1.0"
