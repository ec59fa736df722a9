"""
Health endpoints.
"""

from __future__ import annotations

import os

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from core.db import DB, schema_status
from core.mcp import tool_inventory_status


router = APIRouter()


def _check_db_health() -> dict:
    if DB.engine is None:
        return {"ok": False, "error": "db_not_initialized"}

    try:
        with DB.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        return {"ok": False, "error": str(exc)}

    status = schema_status(DB.engine)
    return {"ok": status["schema_up_to_date"], **status}


@router.get("/health")
async def health():
    """Health check endpoint."""
    db_health = _check_db_health()
    if not db_health.get("ok"):
        raise HTTPException(status_code=503, detail={"database": db_health})

    return {
        "status": "healthy",
        "service": "ContactGraph",
        "version": "0.1.0",
        "instance_id": os.environ.get("CONTACTGRAPH_INSTANCE_ID", "contactgraph-1"),
        "database": db_health,
    }


@router.get("/health/tools")
async def health_tools():
    """Tool inventory health check."""
    tool_inventory = await tool_inventory_status()
    if tool_inventory.get("tool_count", 0) == 0:
        raise HTTPException(status_code=503, detail={"tool_inventory": tool_inventory})

    return {
        "status": "healthy",
        "service": "ContactGraph",
        "tool_inventory": tool_inventory,
    }
