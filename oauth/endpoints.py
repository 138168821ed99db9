"""OAuth endpoints used by the Decap CMS login popup.

- /auth: redirect the popup to the provider's authorize endpoint
- /callback: exchange the returned code for a token and hand it to the CMS
"""

import logging
import secrets
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from config import OAuthConfig, origin_allowed
from oauth.client import TokenExchangeError, exchange_code
from oauth.templates import render_error_page, render_failure_page, render_success_page

logger = logging.getLogger(__name__)

# Router for OAuth endpoints
router = APIRouter(tags=["oauth"])


def get_oauth_config(request: Request) -> OAuthConfig:
    """Configuration attached to the app by create_app()."""
    return request.app.state.oauth_config


def error_response(message: str, status_code: int = 400) -> HTMLResponse:
    return HTMLResponse(render_error_page(message), status_code=status_code)


def build_redirect_uri(config: OAuthConfig, request: Request, provider: str) -> Optional[str]:
    """Callback URL registered with the provider.

    OAUTH_REDIRECT_URL wins; otherwise it is derived from the Host header.
    """
    if config.redirect_url:
        return config.redirect_url

    host = request.headers.get("host")
    if not host:
        return None
    return f"https://{host}/callback?{urlencode({'provider': provider})}"


def build_authorize_url(config: OAuthConfig, redirect_uri: str, scope: str, state: str) -> str:
    params = {
        "response_type": "code",
        "client_id": config.client_id,
        "state": state,
        "redirect_uri": redirect_uri,
        "scope": scope,
    }
    return f"{config.authorize_url}?{urlencode(params)}"


def request_origin(request: Request) -> Optional[str]:
    """Origin header of the request, if the browser sent a usable one.

    Referer is not consulted: after the provider redirect it names the
    provider's host, not the CMS.
    """
    origin = request.headers.get("origin")
    if not origin or origin == "null":
        return None
    return origin


# ============== Authorization Redirect ==============

@router.get("/auth")
async def auth(
    request: Request,
    provider: Optional[str] = None,
    scope: Optional[str] = None,
    config: OAuthConfig = Depends(get_oauth_config),
):
    """Redirect the login popup to the provider's authorize endpoint."""
    provider = provider or config.provider
    if provider != config.provider:
        logger.info(f"[AUTH] Rejected unexpected provider: {provider}")
        return error_response(f"Unexpected provider `{provider}`")

    redirect_uri = build_redirect_uri(config, request, provider)
    if not redirect_uri:
        return error_response("No host header")

    # Decap does not echo state back, so it is not persisted
    state = secrets.token_urlsafe(16)
    url = build_authorize_url(config, redirect_uri, scope or config.scopes, state)

    logger.info(f"[AUTH] Redirecting to {config.authorize_url}")
    return RedirectResponse(url=url, status_code=302)


# ============== Callback ==============

@router.get("/callback")
async def callback(
    request: Request,
    provider: Optional[str] = None,
    code: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    config: OAuthConfig = Depends(get_oauth_config),
):
    """Exchange the authorization code and relay the result to the CMS window."""
    provider = provider or config.provider
    if provider != config.provider:
        logger.info(f"[CALLBACK] Rejected unexpected provider: {provider}")
        return error_response(f"Unexpected provider `{provider}`")

    origin = request_origin(request)
    if origin is not None and not origin_allowed(origin, config.origins):
        logger.warning(f"[CALLBACK] Rejected untrusted origin: {origin}")
        return error_response("Origin not allowed", status_code=403)

    if error:
        # Provider redirected back with an error, e.g. the user denied access
        logger.info(f"[CALLBACK] Provider returned error: {error}")
        return HTMLResponse(
            render_failure_page(provider, error_description or error, config.origins),
            status_code=400,
        )

    if not code:
        return error_response("Code is required")

    redirect_uri = build_redirect_uri(config, request, provider)
    if not redirect_uri:
        return error_response("No host header")

    try:
        token = await exchange_code(
            config,
            code,
            redirect_uri,
            transport=getattr(request.app.state, "http_transport", None),
        )
    except TokenExchangeError as e:
        logger.warning(f"[CALLBACK] Token exchange failed: {e.message}")
        return HTMLResponse(
            render_failure_page(provider, e.message, config.origins),
            status_code=502,
        )

    logger.info(f"[CALLBACK] Login completed for provider: {provider}")
    return HTMLResponse(render_success_page(provider, token, config.origins))
