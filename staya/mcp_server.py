"""FastMCP server exposing the key personnel roster as MCP tools.

Tools:
  - list_roster()         : every roster entry
  - lookup_roster(names)  : entries matching a name or alias

The roster is static, so the server holds no state of its own.

Usage:
    uv run python -m staya.mcp_server
"""

from mcp.server.fastmcp import FastMCP

from staya import roster

mcp = FastMCP("staya-roster")


@mcp.tool()
def list_roster() -> list[dict]:
    """Return every NPC of the Volchya Staya roster."""
    return [entry.model_dump() for entry in roster.list_roster()]


@mcp.tool()
def lookup_roster(names: list[str]) -> list[dict]:
    """Look up roster entries by name or alias (case-insensitive)."""
    return [entry.model_dump() for entry in roster.lookup(names)]


if __name__ == "__main__":
    mcp.run()
