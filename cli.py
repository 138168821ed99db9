"""CLI entry point for decap-oauth.

Runs the OAuth provider with uvicorn. Settings come from the environment,
optionally from a .env file in the working directory.
"""
import argparse
import logging
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from config import ConfigError, OAuthConfig, load_config, missing_variables
from logging_config import resolve_log_level, setup_logging

VERSION = "1.0.0"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3005

logger = logging.getLogger(__name__)


# ============== Helper Functions ==============

def load_env_file(path: Path = Path(".env")) -> bool:
    """Load a .env file if present. Existing variables are not overridden."""
    if path.exists():
        load_dotenv(path)
        return True
    return False


def check_environment() -> OAuthConfig:
    """Validate the environment, exiting with status 1 if it is unusable."""
    missing = missing_variables()
    if missing:
        for name in missing:
            print(f"error: undefined environment variable `{name}`.", file=sys.stderr)
        sys.exit(1)

    try:
        return load_config()
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


# ============== Commands ==============

def cmd_serve(args):
    """Start the HTTP server."""
    config = check_environment()
    try:
        level = resolve_log_level(args.log_level)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    setup_logging(level=level)

    from main import create_app
    app = create_app(config)

    logger.info(f"[STARTUP] Server listening on {args.host}:{args.port}...")
    uvicorn.run(app, host=args.host, port=args.port, log_level=level.lower())


def cmd_check(args):
    """Validate configuration and print the resolved provider URLs."""
    config = check_environment()
    print(f"Provider:       {config.provider}")
    print(f"Authorize URL:  {config.authorize_url}")
    print(f"Token URL:      {config.token_url}")
    print(f"Scopes:         {config.scopes}")
    print(f"Origins:        {', '.join(config.origins)}")
    print(f"Redirect URL:   {config.redirect_url or '(derived from Host header)'}")
    print(f"Token timeout:  {config.token_timeout:g}s")


def cmd_version(args):
    """Show version information."""
    print(f"decap-oauth v{VERSION}")


# ============== Main Entry Point ==============

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="decap-oauth",
        description="External OAuth provider for Decap CMS",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  serve     Start the OAuth provider (default)
  check     Validate configuration and show provider URLs
  version   Show version

Required environment:
  OAUTH_CLIENT_ID, OAUTH_SECRET, OAUTH_ORIGINS

Examples:
  decap-oauth --port 3005
  OAUTH_PROVIDER=gitlab decap-oauth check
"""
    )

    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "check", "version"],
        help="Command to run (default: serve)"
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"Bind address (default: {DEFAULT_HOST})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Port (default: {DEFAULT_PORT})")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: LOG_LEVEL or INFO)"
    )
    return parser


def main(argv=None):
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    load_env_file()

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "check":
        cmd_check(args)
    elif args.command == "version":
        cmd_version(args)


if __name__ == "__main__":
    main()
