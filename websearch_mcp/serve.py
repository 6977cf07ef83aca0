"""
Web search MCP server entry point.

This script starts the MCP server exposing the `web-search` tool. It handles:
- Configuration from the environment (and an optional `.env` file)
- Command-line overrides
- Logging setup
- Server startup with uvicorn

Usage:
    # Defaults: 0.0.0.0:9000, or API_HOST / API_PORT from the environment
    python -m websearch_mcp.serve

    # Override the port and log level
    python -m websearch_mcp.serve --port 8001 --log-level debug

Clients connect to http://<host>:<port>/mcp using the Streamable HTTP
transport. Searches need a Chromium build installed for Playwright
(`playwright install chromium`).
"""

import argparse

import uvicorn

from .config import ServerConfig
from .log import configure_logging
from .server.app import create_app


def main() -> None:
    # Parse command-line arguments
    parser = argparse.ArgumentParser(description="Web search MCP server")
    parser.add_argument(
        "--host",
        metavar="HOST",
        type=str,
        help="Interface to listen on (default: API_HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        metavar="PORT",
        type=int,
        help="Port to run the server on (default: API_PORT or 9000)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        type=str,
        help="Minimum log level (default: LOG_LEVEL or info)",
    )
    args = parser.parse_args()

    config = ServerConfig.from_env(host=args.host, port=args.port, log_level=args.log_level)
    configure_logging(config.log_level, config.log_format)

    app = create_app(config)

    # The server handles MCP sessions at /mcp
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level)


if __name__ == "__main__":
    main()
