"""
Request-scoped context objects for core services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import contextvars

from core.errors import ValidationIssue


@dataclass(frozen=True)
class AuthContext:
    account_id: Optional[int] = None
    actor: Optional[str] = None


@dataclass(frozen=True)
class RequestContext:
    auth: AuthContext
    request_id: Optional[str] = None
    source: Optional[str] = None


_CURRENT_REQUEST_CONTEXT: contextvars.ContextVar[Optional["RequestContext"]] = contextvars.ContextVar(
    "contactgraph_request_context",
    default=None,
)


def get_current_request_context() -> Optional["RequestContext"]:
    return _CURRENT_REQUEST_CONTEXT.get()


def set_current_request_context(context: Optional["RequestContext"]) -> contextvars.Token:
    return _CURRENT_REQUEST_CONTEXT.set(context)


def reset_current_request_context(token: contextvars.Token) -> None:
    _CURRENT_REQUEST_CONTEXT.reset(token)


def for_account(account_id: int, actor: Optional[str] = None, source: Optional[str] = None) -> RequestContext:
    return RequestContext(auth=AuthContext(account_id=account_id, actor=actor), source=source)


def resolve_account_id(context: Optional["RequestContext"]) -> int:
    """Return the account every query must be scoped to."""
    if context is None:
        context = get_current_request_context()
    account_id = context.auth.account_id if context and context.auth else None
    if account_id is None:
        raise ValidationIssue(
            "account_id is required for this operation",
            field="account_id",
            error_type="required",
        )
    if isinstance(account_id, bool) or not isinstance(account_id, int) or account_id <= 0:
        raise ValidationIssue(
            "account_id must be a positive integer",
            field="account_id",
            error_type="invalid_id",
        )
    return account_id


__all__ = [
    "AuthContext",
    "RequestContext",
    "get_current_request_context",
    "set_current_request_context",
    "reset_current_request_context",
    "for_account",
    "resolve_account_id",
]
