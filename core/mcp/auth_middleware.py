"""
MCP account middleware for per-account isolation.

Reads the account id from the X-Account-Id header and sets the request
context for the duration of the request using contextvars (async-safe).
"""

from __future__ import annotations

import json
from typing import Optional

import core.config as config
from core.context import (
    AuthContext,
    RequestContext,
    get_current_request_context,
    reset_current_request_context,
    set_current_request_context,
)

ACCOUNT_HEADER = "x-account-id"
ACTOR_HEADER = "x-actor"


def get_current_context() -> RequestContext:
    """Get current request context, or an anonymous one if not set."""
    ctx = get_current_request_context()
    if ctx is not None:
        return ctx
    return RequestContext(auth=AuthContext(actor="anonymous"), source="mcp")


def parse_account_id(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    value = raw.strip()
    if not value.isdigit():
        return None
    account_id = int(value)
    return account_id if account_id > 0 else None


class MCPAccountMiddleware:
    """
    ASGI middleware that binds MCP requests to an account.

    Requests without a valid X-Account-Id header are rejected with 401
    unless REQUIRE_ACCOUNT_HEADER is off.
    """

    def __init__(self, app):
        self.app = app
        self.require_account = config.REQUIRE_ACCOUNT_HEADER

    def __getattr__(self, name):
        return getattr(self.app, name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # ASGI headers are bytes tuples
        headers = {}
        for header_name, header_value in scope.get("headers", []):
            headers[header_name.decode("latin1").lower()] = header_value.decode("latin1")

        raw_account = headers.get(ACCOUNT_HEADER)
        account_id = parse_account_id(raw_account)
        if account_id is None:
            if raw_account is not None:
                await self._send_error(send, 400, "X-Account-Id must be a positive integer")
                return
            if self.require_account:
                await self._send_error(send, 401, "X-Account-Id header required")
                return
            await self.app(scope, receive, send)
            return

        req_ctx = RequestContext(
            auth=AuthContext(account_id=account_id, actor=headers.get(ACTOR_HEADER)),
            source="mcp",
        )
        token = set_current_request_context(req_ctx)
        try:
            await self.app(scope, receive, send)
        finally:
            reset_current_request_context(token)

    async def _send_error(self, send, status_code: int, detail: str):
        """Send JSON error response."""
        body = json.dumps({"error": detail}).encode("utf-8")

        await send({
            "type": "http.response.start",
            "status": status_code,
            "headers": [
                [b"content-type", b"application/json"],
                [b"content-length", str(len(body)).encode("latin1")],
            ],
        })

        await send({
            "type": "http.response.body",
            "body": body,
        })
