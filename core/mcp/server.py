"""
MCP server wiring and tool registration.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from fastmcp import FastMCP

import core.config as config
from core.services import family_service
from core.mcp.auth_middleware import get_current_context, MCPAccountMiddleware

READ_ONLY_TOOL_ANNOTATIONS = {"readOnlyHint": True}
DESTRUCTIVE_TOOL_ANNOTATIONS = {"destructiveHint": True}

mcp = FastMCP("ContactGraph")

_REGISTERED_TOOLS: list[tuple[Callable[..., dict], tuple[Any, ...], dict[str, Any]]] = []
_TOOL_REGISTRY_LOCK = threading.Lock()
_LAST_TOOL_COUNT: Optional[int] = None


def mcp_tool(*args, **kwargs):
    """Register a tool with FastMCP and keep a local registry for rebinding."""
    def decorator(fn: Callable[..., dict]):
        _REGISTERED_TOOLS.append((fn, args, kwargs))
        mcp.tool(*args, **kwargs)(fn)
        return fn
    return decorator


def registered_tool_names() -> list[str]:
    return sorted(fn.__name__ for fn, _, _ in _REGISTERED_TOOLS)


def _record_tool_inventory_count(tool_count: int) -> None:
    global _LAST_TOOL_COUNT
    with _TOOL_REGISTRY_LOCK:
        if tool_count == 0 and (_LAST_TOOL_COUNT is None or _LAST_TOOL_COUNT > 0):
            config.logger.warning(
                "tool_inventory_empty",
                extra={"tool_count": tool_count},
            )
        elif tool_count > 0 and _LAST_TOOL_COUNT == 0:
            config.logger.info(
                "tool_inventory_restored",
                extra={"tool_count": tool_count},
            )
        _LAST_TOOL_COUNT = tool_count


def _rebind_tool_registry(reason: str) -> None:
    with _TOOL_REGISTRY_LOCK:
        for fn, args, kwargs in _REGISTERED_TOOLS:
            mcp.tool(*args, **kwargs)(fn)
        config.logger.warning(
            "tool_registry_rebind",
            extra={"reason": reason, "tool_count": len(_REGISTERED_TOOLS)},
        )


async def tool_inventory_status(refresh_if_empty: bool = False, reason: str = "") -> dict:
    """Return tool inventory details and optionally rebind when empty."""
    tools = await mcp.get_tools()
    tool_names = sorted(tools.keys())
    tool_count = len(tool_names)

    refreshed = False
    if refresh_if_empty and tool_count == 0:
        refreshed = True
        _rebind_tool_registry(reason or "inventory_empty")
        tools = await mcp.get_tools()
        tool_names = sorted(tools.keys())
        tool_count = len(tool_names)

    _record_tool_inventory_count(tool_count)

    return {
        "tool_count": tool_count,
        "tools": tool_names,
        "refreshed": refreshed,
        "retry_after_seconds": config.TOOL_INVENTORY_RETRY_SECONDS if tool_count == 0 else None,
    }


@mcp.resource(
    "contactgraph://tool-inventory",
    name="contactgraph_tool_inventory",
    mime_type="application/json",
)
async def tool_inventory_resource() -> dict:
    """Expose tool inventory as a resource for discovery fallbacks."""
    return await tool_inventory_status(refresh_if_empty=True, reason="resource_read")


# =============================================================================
# Contacts
# =============================================================================

@mcp_tool()
def contact_create(
    first_name: str,
    middle_name: Optional[str] = None,
    last_name: Optional[str] = None,
    gender: Optional[str] = None,
    email: Optional[str] = None,
    is_partial: bool = False,
) -> dict:
    return family_service.contact_create(
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        gender=gender,
        email=email,
        is_partial=is_partial,
        context=get_current_context(),
    )


@mcp_tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def contact_get(contact_id: int) -> dict:
    return family_service.contact_get(contact_id=contact_id, context=get_current_context())


@mcp_tool()
def contact_update_name(
    contact_id: int,
    first_name: str,
    middle_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> dict:
    return family_service.contact_update_name(
        contact_id=contact_id,
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        context=get_current_context(),
    )


@mcp_tool()
def contact_update_food_preferences(contact_id: int, food_preferences: Optional[str] = None) -> dict:
    return family_service.contact_update_food_preferences(
        contact_id=contact_id,
        food_preferences=food_preferences,
        context=get_current_context(),
    )


@mcp_tool()
def contact_set_birthday(
    contact_id: int,
    approximation: str,
    date_of_birth: Optional[str] = None,
    age: Optional[int] = None,
) -> dict:
    return family_service.contact_set_birthday(
        contact_id=contact_id,
        approximation=approximation,
        date_of_birth=date_of_birth,
        age=age,
        context=get_current_context(),
    )


@mcp_tool()
def contact_set_avatar_color(contact_id: int, color: Optional[str] = None) -> dict:
    return family_service.contact_set_avatar_color(
        contact_id=contact_id,
        color=color,
        context=get_current_context(),
    )


# =============================================================================
# Family graph
# =============================================================================

@mcp_tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def contact_potential_relatives(contact_id: int) -> dict:
    return family_service.contact_potential_relatives(contact_id=contact_id, context=get_current_context())


@mcp_tool()
def contact_link_partner(
    contact_id: int,
    partner_id: Optional[int] = None,
    bilateral: bool = False,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> dict:
    return family_service.contact_link_partner(
        contact_id=contact_id,
        partner_id=partner_id,
        bilateral=bilateral,
        first_name=first_name,
        last_name=last_name,
        context=get_current_context(),
    )


@mcp_tool()
def contact_make_partnership_bilateral(contact_id: int, partner_id: int) -> dict:
    return family_service.contact_make_partnership_bilateral(
        contact_id=contact_id,
        partner_id=partner_id,
        context=get_current_context(),
    )


@mcp_tool(annotations=DESTRUCTIVE_TOOL_ANNOTATIONS)
def contact_unlink_partner(contact_id: int, partner_id: int, bilateral: bool = False) -> dict:
    return family_service.contact_unlink_partner(
        contact_id=contact_id,
        partner_id=partner_id,
        bilateral=bilateral,
        context=get_current_context(),
    )


@mcp_tool()
def contact_link_offspring(
    parent_id: int,
    child_id: Optional[int] = None,
    bilateral: bool = False,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> dict:
    return family_service.contact_link_offspring(
        parent_id=parent_id,
        child_id=child_id,
        bilateral=bilateral,
        first_name=first_name,
        last_name=last_name,
        context=get_current_context(),
    )


@mcp_tool(annotations=DESTRUCTIVE_TOOL_ANNOTATIONS)
def contact_unlink_offspring(parent_id: int, child_id: int, bilateral: bool = False) -> dict:
    return family_service.contact_unlink_offspring(
        parent_id=parent_id,
        child_id=child_id,
        bilateral=bilateral,
        context=get_current_context(),
    )


@mcp_tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def contact_family(contact_id: int) -> dict:
    return family_service.contact_family(contact_id=contact_id, context=get_current_context())


@mcp_tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def contact_first_partner(contact_id: int) -> dict:
    return family_service.contact_first_partner(contact_id=contact_id, context=get_current_context())


@mcp_tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def contact_first_progenitor(contact_id: int) -> dict:
    return family_service.contact_first_progenitor(contact_id=contact_id, context=get_current_context())


@mcp_tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def contact_relative_reminders(contact_id: int) -> dict:
    return family_service.contact_relative_reminders(contact_id=contact_id, context=get_current_context())


# =============================================================================
# Event log
# =============================================================================

@mcp_tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def contact_events(contact_id: int, object_type: Optional[str] = None, limit: int = 50) -> dict:
    return family_service.contact_events(
        contact_id=contact_id,
        object_type=object_type,
        limit=limit,
        context=get_current_context(),
    )


@mcp_tool(annotations=DESTRUCTIVE_TOOL_ANNOTATIONS)
def contact_delete_events_between(contact_id: int, other_id: int, object_type: str) -> dict:
    return family_service.contact_delete_events_between(
        contact_id=contact_id,
        other_id=other_id,
        object_type=object_type,
        context=get_current_context(),
    )


mcp_stream_app = MCPAccountMiddleware(mcp.http_app(
    path="/",
    transport="streamable-http",
    stateless_http=True,
    json_response=True,
))


class MCPRouteNormalizerASGI:
    """Pure ASGI middleware - no response buffering, SSE-safe."""
    def __init__(self, wrapped_app):
        self.wrapped_app = wrapped_app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope.get("path") == "/mcp":
            scope = dict(scope)
            scope["path"] = "/mcp/"
        await self.wrapped_app(scope, receive, send)
