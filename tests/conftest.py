"""
Shared pytest fixtures for the OAuth provider tests.

The provider's token endpoint is never contacted: tests hand the app an
httpx.MockTransport that plays the provider.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from config import load_config
from main import create_app

ORIGINS = "www.example.com,https://cms.example.org"


@pytest.fixture
def base_env():
    """Minimal valid environment."""
    return {
        "OAUTH_CLIENT_ID": "test-client-id",
        "OAUTH_SECRET": "test-client-secret",
        "OAUTH_ORIGINS": ORIGINS,
    }


@pytest.fixture
def config(base_env):
    return load_config(base_env)


@pytest.fixture
def provider_calls():
    """Requests received by the fake token endpoint."""
    return []


@pytest.fixture
def token_handler(provider_calls):
    """Fake GitHub token endpoint: accepts code `good-code` only."""

    def handler(request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        provider_calls.append({"url": str(request.url), "form": form, "headers": request.headers})
        if form.get("code") == "good-code":
            return httpx.Response(200, json={
                "access_token": "gho_testtoken",
                "token_type": "bearer",
                "scope": "repo",
            })
        return httpx.Response(200, json={
            "error": "bad_verification_code",
            "error_description": "The code passed is incorrect or expired.",
        })

    return handler


@pytest.fixture
def app(config, token_handler):
    return create_app(config, transport=httpx.MockTransport(token_handler))


@pytest.fixture
def client(app):
    """Test client that does not follow redirects."""
    return TestClient(app, follow_redirects=False)


def _extract_message(html: str) -> str:
    marker = "var message = "
    start = html.index(marker) + len(marker)
    end = html.index(";\n", start)
    return json.loads(html[start:end])


@pytest.fixture
def bridge_message():
    """Parser for the postMessage payload string embedded in a bridge page."""
    return _extract_message
