"""Decap CMS OAuth provider - FastAPI application.

This app handles:
- The login popup redirect to the Git host (/auth)
- The code exchange and postMessage bridge back to the CMS (/callback)
- Health and info endpoints

Configuration is loaded once (see config.load_config) and attached to the
app; handlers receive it through a dependency.
"""
import logging
from typing import Optional

import httpx
from fastapi import FastAPI

from config import OAuthConfig, load_config
from oauth.endpoints import router as oauth_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(
    config: Optional[OAuthConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        config: Provider configuration. Loaded from the environment if omitted;
            a ConfigError propagates so a bad setup never starts serving.
        transport: Optional httpx transport for the token exchange.
    """
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Decap OAuth",
        description="External OAuth provider for Decap CMS",
        version=VERSION,
    )
    app.state.oauth_config = config
    app.state.http_transport = transport

    app.include_router(oauth_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "decap-oauth", "provider": config.provider}

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "name": "Decap OAuth",
            "version": VERSION,
            "provider": config.provider,
            "endpoints": {
                "auth": "/auth",
                "callback": "/callback",
            },
        }

    logger.info(f"[STARTUP] Provider: {config.provider} ({config.hostname})")
    logger.info(f"[STARTUP] Allowed origins: {', '.join(config.origins)}")
    return app
