"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import core.config as config


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "ContactGraph",
        "version": "0.1.0",
        "description": "Contacts and their family graph for a personal CRM",
        "db_backend": config.DB_BACKEND,
        "events_enabled": config.EVENTS_ENABLED,
        "endpoints": {
            "health": "/health",
            "health_tools": "/health/tools",
            "contacts": "/api/contacts",
            "mcp": "/mcp",
        },
    }
