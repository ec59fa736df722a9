"""
ContactGraph - contacts and their family graph for a personal CRM.

Runs the FastAPI app (HTTP API + MCP endpoint) under uvicorn.
"""

import uvicorn

import core.config as config


if __name__ == "__main__":
    config.logger.info("ContactGraph starting...")
    uvicorn.run("app.main:asgi_app", host=config.HOST, port=config.PORT)
