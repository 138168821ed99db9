"""
Bridge page rendering tests.
"""

import json

from oauth.templates import (
    authorization_message,
    render_error_page,
    render_failure_page,
    render_success_page,
    script_json,
)


def test_authorization_message_format():
    message = authorization_message("github", "success", {"token": "t", "provider": "github"})

    assert message == 'authorization:github:success:{"token": "t", "provider": "github"}'


def test_script_json_cannot_close_script_element():
    encoded = script_json("</script><script>alert(1)</script>")

    assert "</script>" not in encoded
    assert "<" not in encoded
    assert json.loads(encoded) == "</script><script>alert(1)</script>"


def test_success_page_handshake(bridge_message):
    page = render_success_page("github", "gho_abc", ["www.example.com"])

    assert 'window.opener.postMessage("authorizing:" + provider, "*")' in page
    assert "window.opener.postMessage(message, e.origin)" in page
    assert bridge_message(page) == \
        'authorization:github:success:{"token": "gho_abc", "provider": "github"}'


def test_failure_page_escapes_error_text(bridge_message):
    error = "<img src=x onerror=alert(1)>"

    page = render_failure_page("gitlab", error, ["www.example.com"])

    assert error not in page
    assert "&lt;img" in page
    assert bridge_message(page).startswith("authorization:gitlab:error:")
    assert json.loads(bridge_message(page).split(":error:", 1)[1])["message"] == error


def test_error_page_escapes():
    page = render_error_page("Unexpected provider `<b>`")

    assert "<b>" not in page
    assert "&lt;b&gt;" in page
