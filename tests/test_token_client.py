"""
Token exchange client tests against a mocked provider.
"""

import httpx
import pytest

from config import load_config
from oauth.client import TokenExchangeError, exchange_code

REDIRECT_URI = "https://oauth.example.com/callback?provider=github"


def transport_returning(*args, **kwargs):
    return httpx.MockTransport(lambda request: httpx.Response(*args, **kwargs))


@pytest.mark.asyncio
async def test_returns_access_token(config):
    transport = transport_returning(200, json={"access_token": "tok", "token_type": "bearer"})

    assert await exchange_code(config, "code", REDIRECT_URI, transport=transport) == "tok"


@pytest.mark.asyncio
async def test_error_body_with_http_200(config):
    transport = transport_returning(200, json={"error": "bad_verification_code"})

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchange_code(config, "code", REDIRECT_URI, transport=transport)

    assert exc_info.value.message == "bad_verification_code"
    assert exc_info.value.status_code == 200


@pytest.mark.asyncio
async def test_error_description_preferred(config):
    transport = transport_returning(400, json={
        "error": "invalid_grant",
        "error_description": "The provided authorization grant is invalid.",
    })

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchange_code(config, "code", REDIRECT_URI, transport=transport)

    assert exc_info.value.message == "The provided authorization grant is invalid."
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_http_error_status(config):
    transport = transport_returning(500, text="Internal Server Error")

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchange_code(config, "code", REDIRECT_URI, transport=transport)

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_non_json_body(config):
    transport = transport_returning(200, text="access_token=tok&scope=repo")

    with pytest.raises(TokenExchangeError):
        await exchange_code(config, "code", REDIRECT_URI, transport=transport)


@pytest.mark.asyncio
async def test_missing_access_token(config):
    transport = transport_returning(200, json={"token_type": "bearer"})

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchange_code(config, "code", REDIRECT_URI, transport=transport)

    assert "access_token" in exc_info.value.message


@pytest.mark.asyncio
async def test_timeout(config):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchange_code(config, "code", REDIRECT_URI, transport=httpx.MockTransport(handler))

    assert "Timed out" in exc_info.value.message


@pytest.mark.asyncio
async def test_secret_not_in_error_message(config):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TokenExchangeError) as exc_info:
        await exchange_code(config, "code", REDIRECT_URI, transport=httpx.MockTransport(handler))

    assert config.client_secret not in exc_info.value.message


@pytest.mark.asyncio
async def test_configured_timeout_reaches_transport(base_env):
    base_env["OAUTH_TOKEN_TIMEOUT"] = "3"
    config = load_config(base_env)
    seen = []

    def handler(request):
        seen.append(request.extensions["timeout"])
        return httpx.Response(200, json={"access_token": "tok"})

    await exchange_code(config, "code", REDIRECT_URI, transport=httpx.MockTransport(handler))

    assert seen == [{"connect": 3.0, "read": 3.0, "write": 3.0, "pool": 3.0}]
