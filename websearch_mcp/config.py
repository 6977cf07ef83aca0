"""
Server configuration.

Settings come from the process environment, optionally seeded from a `.env`
file in the working directory, with a fixed fallback for every value:

    API_NAME                     Service name, also the MCP server name
    API_HOST / API_PORT          Listening address (0.0.0.0:9000)
    LOG_LEVEL                    critical, error, warning (or warn), info,
                                 debug (info)
    LOG_FORMAT                   console or json (console)
    MCP_JSON_RESPONSE            Answer POSTs with JSON instead of SSE (false)
    MCP_MAX_BODY_BYTES           Largest accepted POST body (102400)
    SEARCH_NUM_RETRIES           Total attempts per search page fetch, the
                                 first one included; 0 or 1 fetch once (0)
    SEARCH_NAVIGATION_TIMEOUT_MS Navigation timeout (browser default)
    SEARCH_INCLUDE_DESCRIPTIONS  Return result snippets as `description` (false)
"""

import os
from typing import Mapping

import chz
from dotenv import load_dotenv

LOG_FORMATS = ("console", "json")
# Level names understood by both stdlib logging and uvicorn
LOG_LEVELS = ("critical", "error", "warning", "info", "debug")
_LOG_LEVEL_ALIASES = {"warn": "warning"}

DEFAULT_MAX_BODY_BYTES = 100 * 1024

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"Invalid integer for {name}: {value!r}") from e


def parse_log_level(name: str, value: str) -> str:
    lowered = value.strip().lower()
    lowered = _LOG_LEVEL_ALIASES.get(lowered, lowered)
    if lowered not in LOG_LEVELS:
        raise ValueError(f"Invalid log level for {name}: {value!r}, expected one of {LOG_LEVELS}")
    return lowered


@chz.chz(typecheck=True)
class ServerConfig:
    name: str = chz.field(doc="Service name, also announced as the MCP server name", default="websearch-mcp")
    host: str = chz.field(doc="Interface to listen on", default="0.0.0.0")
    port: int = chz.field(doc="Port to listen on", default=9000)
    log_level: str = chz.field(doc="Minimum log level", default="info")
    log_format: str = chz.field(doc="Log renderer, console or json", default="console")
    json_response: bool = chz.field(doc="Answer POST requests with JSON instead of SSE", default=False)
    max_body_bytes: int = chz.field(doc="Largest accepted POST body in bytes", default=DEFAULT_MAX_BODY_BYTES)
    search_num_retries: int = chz.field(
        doc="Total attempts per search page fetch, the first one included; 0 or 1 fetch once",
        default=0,
    )
    search_navigation_timeout_ms: float | None = chz.field(
        doc="Navigation timeout in milliseconds, None for the browser default",
        default=None,
    )
    search_include_descriptions: bool = chz.field(
        doc="Return the snippet of each result as `description`",
        default=False,
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "ServerConfig":
        """
        Build the configuration from environment variables.

        Args:
            environ: Variables to read; `os.environ` (after loading `.env`)
                if not provided
            overrides: Field values taking precedence over the environment;
                None values are ignored

        Raises:
            ValueError: If a variable holds a malformed value
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        kwargs: dict = {}
        if name := environ.get("API_NAME"):
            kwargs["name"] = name
        if host := environ.get("API_HOST"):
            kwargs["host"] = host
        if port := environ.get("API_PORT"):
            kwargs["port"] = parse_int("API_PORT", port)
        if log_level := environ.get("LOG_LEVEL"):
            kwargs["log_level"] = parse_log_level("LOG_LEVEL", log_level)
        if log_format := environ.get("LOG_FORMAT"):
            if log_format.lower() not in LOG_FORMATS:
                raise ValueError(f"Invalid LOG_FORMAT: {log_format!r}, expected one of {LOG_FORMATS}")
            kwargs["log_format"] = log_format.lower()
        if "MCP_JSON_RESPONSE" in environ:
            kwargs["json_response"] = parse_bool("MCP_JSON_RESPONSE", environ["MCP_JSON_RESPONSE"])
        if max_body := environ.get("MCP_MAX_BODY_BYTES"):
            kwargs["max_body_bytes"] = parse_int("MCP_MAX_BODY_BYTES", max_body)
        if retries := environ.get("SEARCH_NUM_RETRIES"):
            kwargs["search_num_retries"] = parse_int("SEARCH_NUM_RETRIES", retries)
        if timeout := environ.get("SEARCH_NAVIGATION_TIMEOUT_MS"):
            kwargs["search_navigation_timeout_ms"] = float(parse_int("SEARCH_NAVIGATION_TIMEOUT_MS", timeout))
        if "SEARCH_INCLUDE_DESCRIPTIONS" in environ:
            kwargs["search_include_descriptions"] = parse_bool(
                "SEARCH_INCLUDE_DESCRIPTIONS", environ["SEARCH_INCLUDE_DESCRIPTIONS"]
            )
        kwargs.update({key: value for key, value in overrides.items() if value is not None})
        if overrides.get("log_level") is not None:
            kwargs["log_level"] = parse_log_level("log_level", overrides["log_level"])
        return cls(**kwargs)
