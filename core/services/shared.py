"""
Shared helpers and configuration for contact services.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable

import core.config as config
from core.errors import RecordNotFoundError, ValidationIssue
from core.validators import (
    validate_required_text as _validate_required_text,
    validate_optional_text as _validate_optional_text,
    validate_limit as _validate_limit,
    validate_id as _validate_id,
    validate_color as _validate_color,
    validate_age as _validate_age,
    parse_date as _parse_date,
)

# =============================================================================
# Configuration
# =============================================================================

logger = config.logger

MAX_RESULT_LIMIT = config.MAX_RESULT_LIMIT
MAX_NAME_LENGTH = config.MAX_NAME_LENGTH
MAX_SHORT_TEXT_LENGTH = config.MAX_SHORT_TEXT_LENGTH
MAX_TEXT_LENGTH = config.MAX_TEXT_LENGTH
MAX_AGE_YEARS = config.MAX_AGE_YEARS


# =============================================================================
# Helper Functions
# =============================================================================

def _tool_error_payload(tool_name: str, exc: ValidationIssue) -> dict:
    return {
        "status": "error",
        "error_type": "validation_error",
        "tool": tool_name,
        "field": exc.field,
        "message": str(exc),
    }


def _tool_not_found_payload(tool_name: str, exc: RecordNotFoundError) -> dict:
    return {
        "status": "not_found",
        "tool": tool_name,
        "model": exc.model,
        "id": exc.record_id,
        "message": str(exc),
    }


def _log_validation_issue(tool_name: str, exc: ValidationIssue, warn: bool = False) -> None:
    payload = {
        "tool": tool_name,
        "field": exc.field,
        "error_type": exc.error_type,
        "detail": str(exc),
    }
    if warn:
        logger.warning("tool_validation_error", extra=payload)
    else:
        logger.info("tool_validation_error", extra=payload)


def _tool_error_handler(fn: Callable[..., dict]) -> Callable[..., dict]:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ValidationIssue as exc:
            _log_validation_issue(fn.__name__, exc, warn=False)
            return _tool_error_payload(fn.__name__, exc)
        except RecordNotFoundError as exc:
            logger.info(
                "tool_not_found",
                extra={"tool": fn.__name__, "model": exc.model, "record_id": exc.record_id},
            )
            return _tool_not_found_payload(fn.__name__, exc)
        except ValueError as exc:
            issue = ValidationIssue(str(exc), field="unknown", error_type="value_error")
            _log_validation_issue(fn.__name__, issue, warn=True)
            return _tool_error_payload(fn.__name__, issue)
    return wrapper


def service_tool(fn: Callable[..., dict]) -> Callable[..., dict]:
    return _tool_error_handler(fn)
