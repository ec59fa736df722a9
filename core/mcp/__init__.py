from core.mcp.server import (
    mcp,
    mcp_stream_app,
    registered_tool_names,
    tool_inventory_status,
    MCPRouteNormalizerASGI,
)

__all__ = [
    "mcp",
    "mcp_stream_app",
    "registered_tool_names",
    "tool_inventory_status",
    "MCPRouteNormalizerASGI",
]
