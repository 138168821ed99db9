"""Token exchange against the hosting provider's token endpoint."""

import logging
from typing import Optional

import httpx

from config import OAuthConfig

logger = logging.getLogger(__name__)


class TokenExchangeError(Exception):
    """The provider did not hand out an access token for the code."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


async def exchange_code(
    config: OAuthConfig,
    code: str,
    redirect_uri: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Exchange an authorization code for an access token.

    Args:
        config: Provider configuration (token URL, client credentials).
        code: The authorization code received on the callback.
        redirect_uri: The redirect URI sent with the authorize request.
        transport: Optional httpx transport, used in place of the network.

    Returns:
        The access token.

    Raises:
        TokenExchangeError: On transport failure, a non-2xx response, an
            OAuth error body, or a response without ``access_token``.
    """
    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
        "client_id": config.client_id,
        "client_secret": config.client_secret,
    }

    try:
        async with httpx.AsyncClient(timeout=config.token_timeout, transport=transport) as client:
            response = await client.post(
                config.token_url,
                data=data,
                headers={"Accept": "application/json"},
            )
    except httpx.TimeoutException:
        logger.warning(f"[TOKEN] Token endpoint timed out: {config.token_url}")
        raise TokenExchangeError("Timed out contacting the token endpoint")
    except httpx.HTTPError as e:
        logger.warning(f"[TOKEN] Token request failed: {e}")
        raise TokenExchangeError(f"Token request failed: {e.__class__.__name__}")

    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("error"):
        # GitHub answers bad codes with HTTP 200 and an error body
        description = body.get("error_description") or body["error"]
        logger.info(f"[TOKEN] Provider rejected code: {body['error']}")
        raise TokenExchangeError(str(description), status_code=response.status_code)

    if response.status_code >= 400:
        logger.warning(f"[TOKEN] Token endpoint returned HTTP {response.status_code}")
        raise TokenExchangeError(
            f"Token endpoint returned HTTP {response.status_code}",
            status_code=response.status_code,
        )

    if not isinstance(body, dict):
        raise TokenExchangeError("Token endpoint returned a non-JSON response",
                                 status_code=response.status_code)

    token = body.get("access_token")
    if not token:
        raise TokenExchangeError("No access_token in token response",
                                 status_code=response.status_code)

    logger.info(f"[TOKEN] Access token issued by {config.provider}")
    return token
