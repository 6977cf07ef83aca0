"""Web search exposed as an MCP tool, backed by a headless browser."""

__version__ = "1.0.0"
