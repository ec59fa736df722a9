"""
Dependency helpers for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException

from core.context import AuthContext, RequestContext
from core.mcp.auth_middleware import parse_account_id


async def get_auth_context(
    x_account_id: Optional[str] = Header(default=None),
    x_actor: Optional[str] = Header(default=None),
) -> AuthContext:
    if x_account_id is None:
        raise HTTPException(status_code=401, detail="X-Account-Id header required")
    account_id = parse_account_id(x_account_id)
    if account_id is None:
        raise HTTPException(status_code=400, detail="X-Account-Id must be a positive integer")
    return AuthContext(account_id=account_id, actor=x_actor or "api")


async def get_request_context(
    auth: AuthContext = Depends(get_auth_context),
) -> RequestContext:
    return RequestContext(auth=auth, source="http")
