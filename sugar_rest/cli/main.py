"""Main CLI entry point for the SugarCRM REST client."""

import argparse
import json
import logging
import os
import sys

from sugar_rest.core import (
    register_profile,
    list_profiles,
    add_profile,
    save_profile,
    list_saved_profiles,
    ProfileNotFoundError,
    ConfigError,
    SugarRestError,
)
from sugar_rest.client import create_client
from sugar_rest.client.sugar_client import LOG_LEVELS

logger = logging.getLogger(__name__)

USERNAME_ENV = "SUGAR_REST_USERNAME"
PASSWORD_ENV = "SUGAR_REST_PASSWORD"


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    # Suppress httpx INFO logs for cleaner output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _resolve_login(args) -> tuple[str, str]:
    """Get username and password from flags or environment variables."""
    username = args.username or os.getenv(USERNAME_ENV)
    password = args.password or os.getenv(PASSWORD_ENV)

    if not username or not password:
        print("Error: No credentials provided.", file=sys.stderr)
        print(f"Use --username/--password or set {USERNAME_ENV} and {PASSWORD_ENV}.", file=sys.stderr)
        sys.exit(1)

    return username, password


def _run_with_client(args, action):
    """Log in with the selected profile, run action(client) and print its result."""
    username, password = _resolve_login(args)
    try:
        with create_client(args.profile, username, password) as client:
            result = action(client)
    except (ProfileNotFoundError, ConfigError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except SugarRestError as e:
        print(f"API error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    if result is not None:
        _print_json(result)


def cmd_register(args):
    """Handle the register command."""
    try:
        profile = register_profile(
            name=args.name,
            endpoint=args.endpoint,
            client_id=args.client_id,
            client_secret=args.client_secret,
            platform=args.platform,
            timeout_seconds=args.timeout,
            connect_timeout_seconds=args.connect_timeout,
        )

        path = save_profile(profile)
        print(f"Successfully registered profile '{profile.name}' ({profile.endpoint})")
        print(f"Configuration saved to: {path}")

    except ConfigError as e:
        print(f"Error registering profile: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_list(args):
    """Handle the list command."""
    for profile in list_saved_profiles():
        add_profile(profile)

    profiles = list_profiles()

    if not profiles:
        print("No profiles registered.")
        return

    print(f"Registered profiles ({len(profiles)}):")
    print()
    for profile in profiles:
        print(f"  Name:      {profile.name}")
        print(f"  Endpoint:  {profile.endpoint}")
        print(f"  Client ID: {profile.client_id}")
        print(f"  Platform:  {profile.platform}")
        print()


def cmd_me(args):
    """Handle the me command."""
    _run_with_client(args, lambda client: client.me())


def cmd_search(args):
    """Handle the search command."""
    def action(client):
        if args.module:
            return client.search_module(
                args.module,
                args.query,
                max_num=args.max_num,
                offset=args.offset,
                fields=args.fields,
            )
        return client.search(args.query, max_num=args.max_num, offset=args.offset, fields=args.fields)

    _run_with_client(args, action)


def cmd_get(args):
    """Handle the get command."""
    _run_with_client(args, lambda client: client.retrieve_record(args.module, args.id))


def cmd_log(args):
    """Handle the log command."""
    _run_with_client(args, lambda client: client.log_message(args.message, args.level))


def _add_session_arguments(parser):
    parser.add_argument("--profile", required=True, help="Profile name (e.g., 'production')")
    parser.add_argument("--username", help=f"Sugar username (or set {USERNAME_ENV})")
    parser.add_argument("--password", help=f"Sugar password (or set {PASSWORD_ENV})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sugar-rest",
        description="SugarCRM v10 REST client CLI",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Register command
    register_parser = subparsers.add_parser("register", help="Register a Sugar instance profile")
    register_parser.add_argument("--name", required=True, help="Profile name")
    register_parser.add_argument("--endpoint", required=True, help="Sugar instance URL")
    register_parser.add_argument("--client-id", default="sugar", help="OAuth client ID")
    register_parser.add_argument("--client-secret", default="", help="OAuth client secret")
    register_parser.add_argument("--platform", default="base", help="Sugar platform")
    register_parser.add_argument("--timeout", type=float, default=30.0, help="Request timeout in seconds")
    register_parser.add_argument(
        "--connect-timeout", type=float, default=10.0, help="Connect timeout in seconds"
    )
    register_parser.set_defaults(func=cmd_register)

    # List command
    list_parser = subparsers.add_parser("list", help="List registered profiles")
    list_parser.set_defaults(func=cmd_list)

    # Me command
    me_parser = subparsers.add_parser("me", help="Show the current user")
    _add_session_arguments(me_parser)
    me_parser.set_defaults(func=cmd_me)

    # Search command
    search_parser = subparsers.add_parser("search", help="Search globally or within a module")
    _add_session_arguments(search_parser)
    search_parser.add_argument("--query", required=True, help="Search query")
    search_parser.add_argument("--module", help="Restrict the search to one module")
    search_parser.add_argument("--max-num", type=int, default=20, help="Maximum records to return")
    search_parser.add_argument("--offset", type=int, default=0, help="Records to skip")
    search_parser.add_argument("--fields", help="Comma delimited fields to retrieve")
    search_parser.set_defaults(func=cmd_search)

    # Get command
    get_parser = subparsers.add_parser("get", help="Retrieve a record")
    _add_session_arguments(get_parser)
    get_parser.add_argument("--module", required=True, help="Module name (e.g., 'Accounts')")
    get_parser.add_argument("--id", required=True, help="Record ID")
    get_parser.set_defaults(func=cmd_get)

    # Log command
    log_parser = subparsers.add_parser("log", help="Write a message to the Sugar log")
    _add_session_arguments(log_parser)
    log_parser.add_argument("--message", required=True, help="Message text")
    log_parser.add_argument(
        "--level",
        default="info",
        choices=sorted(LOG_LEVELS),
        help="Log level",
    )
    log_parser.set_defaults(func=cmd_log)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
