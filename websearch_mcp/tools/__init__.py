"""
Tool System Module

Tools are the capabilities this server exposes to MCP clients. Each tool has
a name, a description and a JSON input schema, and is invoked through
`tools/call` requests routed to it by name.

All tools inherit from the base Tool class (defined in tool.py), which logs
and re-raises failures so the MCP server can report them to the caller as
failed tool calls.

For implementation details, see the individual tool modules:
- tool.py: Base Tool abstract class
- web_search/: Web search backed by a headless browser
"""
