"""Config management for decap-oauth.

All settings come from environment variables and are read once at startup.
The resulting OAuthConfig is read-only and handed to the app explicitly.
"""
import math
import os
import re
from typing import Iterable, Mapping, Optional
from urllib.parse import urlparse


REQUIRED_VARIABLES = ("OAUTH_CLIENT_ID", "OAUTH_SECRET", "OAUTH_ORIGINS")

DEFAULT_PROVIDER = "github"
DEFAULT_TOKEN_TIMEOUT = 10.0

# URL templates per provider: hostname + path
PROVIDER_DEFAULTS = {
    "github": {
        "hostname": "https://github.com",
        "token_path": "/login/oauth/access_token",
        "authorize_path": "/login/oauth/authorize",
        "scopes": "repo",
    },
    "gitlab": {
        "hostname": "https://gitlab.com",
        "token_path": "/oauth/token",
        "authorize_path": "/oauth/authorize",
        "scopes": "api",
    },
}

_PROVIDER_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class ConfigError(ValueError):
    """Raised when the environment does not describe a usable provider."""


class OAuthConfig:
    """Configuration container."""

    def __init__(self, data: dict):
        self._data = dict(data)

    def __repr__(self) -> str:
        return (
            f"OAuthConfig(provider={self.provider!r}, hostname={self.hostname!r}, "
            f"origins={self.origins!r})"
        )

    @property
    def client_id(self) -> str:
        return self._data["client_id"]

    @property
    def client_secret(self) -> str:
        return self._data["client_secret"]

    @property
    def origins(self) -> tuple:
        return tuple(self._data["origins"])

    @property
    def provider(self) -> str:
        return self._data["provider"]

    @property
    def hostname(self) -> str:
        return self._data["hostname"]

    @property
    def token_path(self) -> str:
        return self._data["token_path"]

    @property
    def authorize_path(self) -> str:
        return self._data["authorize_path"]

    @property
    def scopes(self) -> str:
        return self._data["scopes"]

    @property
    def redirect_url(self) -> Optional[str]:
        return self._data.get("redirect_url")

    @property
    def token_timeout(self) -> float:
        return self._data.get("token_timeout", DEFAULT_TOKEN_TIMEOUT)

    @property
    def authorize_url(self) -> str:
        return f"{self.hostname}{self.authorize_path}"

    @property
    def token_url(self) -> str:
        return f"{self.hostname}{self.token_path}"


def _get(environ: Mapping[str, str], name: str) -> str:
    return (environ.get(name) or "").strip()


def parse_origins(value: str) -> tuple:
    """Split a comma-separated origin list, dropping blanks."""
    return tuple(part.strip() for part in value.split(",") if part.strip())


def missing_variables(environ: Optional[Mapping[str, str]] = None) -> list:
    """Return the required variables that are unset or empty."""
    environ = os.environ if environ is None else environ
    return [name for name in REQUIRED_VARIABLES if not _get(environ, name)]


def load_config(environ: Optional[Mapping[str, str]] = None) -> OAuthConfig:
    """Build an OAuthConfig from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If a required variable is missing or a value is invalid.
    """
    environ = os.environ if environ is None else environ

    missing = missing_variables(environ)
    if missing:
        raise ConfigError(
            "Missing required environment variable(s): " + ", ".join(missing)
        )

    origins = parse_origins(_get(environ, "OAUTH_ORIGINS"))
    if not origins:
        raise ConfigError("OAUTH_ORIGINS must list at least one origin")

    provider = _get(environ, "OAUTH_PROVIDER") or DEFAULT_PROVIDER
    if not _PROVIDER_NAME.match(provider):
        raise ConfigError(f"Invalid OAUTH_PROVIDER `{provider}`")

    defaults = PROVIDER_DEFAULTS.get(provider.lower(), {})
    hostname = _get(environ, "OAUTH_HOSTNAME") or defaults.get("hostname", "")
    token_path = _get(environ, "OAUTH_TOKEN_PATH") or defaults.get("token_path", "")
    authorize_path = _get(environ, "OAUTH_AUTHORIZE_PATH") or defaults.get("authorize_path", "")
    scopes = _get(environ, "OAUTH_SCOPES") or defaults.get("scopes", "")

    if not (hostname and token_path and authorize_path):
        raise ConfigError(
            f"Provider `{provider}` has no defaults: set OAUTH_HOSTNAME, "
            "OAUTH_TOKEN_PATH and OAUTH_AUTHORIZE_PATH"
        )

    hostname = hostname.rstrip("/")
    parsed = urlparse(hostname)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"OAUTH_HOSTNAME must be an http(s) URL, got `{hostname}`")

    redirect_url = _get(environ, "OAUTH_REDIRECT_URL") or None
    if redirect_url and urlparse(redirect_url).scheme not in ("http", "https"):
        raise ConfigError(f"OAUTH_REDIRECT_URL must be an http(s) URL, got `{redirect_url}`")

    raw_timeout = _get(environ, "OAUTH_TOKEN_TIMEOUT")
    try:
        token_timeout = float(raw_timeout) if raw_timeout else DEFAULT_TOKEN_TIMEOUT
    except ValueError:
        raise ConfigError(f"OAUTH_TOKEN_TIMEOUT must be a number, got `{raw_timeout}`")
    if not math.isfinite(token_timeout) or token_timeout <= 0:
        raise ConfigError("OAUTH_TOKEN_TIMEOUT must be a positive, finite number of seconds")

    return OAuthConfig({
        "client_id": _get(environ, "OAUTH_CLIENT_ID"),
        "client_secret": _get(environ, "OAUTH_SECRET"),
        "origins": origins,
        "provider": provider,
        "hostname": hostname,
        "token_path": _ensure_slash(token_path),
        "authorize_path": _ensure_slash(authorize_path),
        "scopes": scopes,
        "redirect_url": redirect_url,
        "token_timeout": token_timeout,
    })


def _ensure_slash(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


def _normalize_origin(origin: str) -> str:
    return origin.strip().rstrip("/").lower()


def origin_allowed(origin: Optional[str], allowed: Iterable[str]) -> bool:
    """Check an origin against the allow-list.

    An entry with a scheme (``https://cms.example.com``) must equal the origin
    exactly. A bare entry (``cms.example.com``) matches the origin's host,
    including the port when the entry names one.
    """
    if not origin:
        return False

    origin = _normalize_origin(origin)
    parsed = urlparse(origin)
    if not parsed.scheme or not parsed.netloc:
        return False

    for entry in allowed:
        entry = _normalize_origin(entry)
        if not entry:
            continue
        if "://" in entry:
            if entry == origin:
                return True
        elif entry in (parsed.netloc, parsed.hostname):
            return True
    return False
