"""
Minimal import harness for embedding the contact services elsewhere.

This module must not import app wiring or FastAPI.
"""

import core.context  # noqa: F401
import core.models  # noqa: F401
import core.audit  # noqa: F401
import core.services.contact_graph  # noqa: F401
import core.services.family_service  # noqa: F401
