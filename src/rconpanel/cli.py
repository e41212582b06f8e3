"""CLI entry point for the RCON client."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import NoReturn

from rconpanel.client import run_command
from rconpanel.config import AppConfig, ServerConfig, load_config
from rconpanel.errors import AuthenticationError, RconError, RconTimeoutError
from rconpanel.formatting import format_player, format_response
from rconpanel.players import fetch_players
from rconpanel.repl import ConsoleContext, run_repl


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rconpanel",
        description="Minecraft RCON client",
    )
    parser.add_argument(
        "server",
        nargs="?",
        help="Server name (from config) or host:port (e.g., 10.0.0.5:25575)",
    )
    parser.add_argument(
        "-p",
        "--password",
        help="RCON password (overrides config and environment)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-c",
        "--command",
        help="Execute a single command and exit (non-interactive mode)",
    )
    mode.add_argument(
        "--players",
        action="store_true",
        default=False,
        help="List online players with operator and AFK status, then exit",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Socket timeout in seconds (default: from config, else 3)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Strip formatting codes instead of converting to ANSI colors",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log protocol activity to stderr",
    )
    return parser


def select_server(config: AppConfig) -> tuple[str, ServerConfig]:
    """Prompt the user to select from configured servers.

    Returns (key, ServerConfig).
    """
    servers = list(config.servers.items())
    if not servers:
        print("No servers configured.", file=sys.stderr)
        sys.exit(1)

    print("Available servers:")
    for i, (_key, srv) in enumerate(servers, 1):
        print(f"  {i}. {srv.name} ({srv.host}:{srv.port})")

    while True:
        try:
            choice = input(f"\nSelect server [1-{len(servers)}]: ").strip()
            idx = int(choice) - 1
            if 0 <= idx < len(servers):
                return servers[idx]
        except ValueError:
            pass
        except EOFError:
            sys.exit(1)
        print(f"Please enter a number between 1 and {len(servers)}")


def resolve_server(
    server_arg: str | None, config: AppConfig
) -> tuple[str, ServerConfig]:
    """Resolve the target server from CLI arg or interactive selection.

    Returns (display_name, ServerConfig).
    """
    if server_arg is not None:
        if server_arg in config.servers:
            return server_arg, config.servers[server_arg]

        if ":" in server_arg:
            host, port_str = server_arg.rsplit(":", 1)
            try:
                port = int(port_str)
            except ValueError:
                pass
            else:
                return server_arg, ServerConfig(name=server_arg, host=host, port=port)

        return server_arg, ServerConfig(name=server_arg, host=server_arg)

    if config.default_server and config.default_server in config.servers:
        key = config.default_server
        return key, config.servers[key]

    return select_server(config)


def resolve_password(password_arg: str | None, server: ServerConfig) -> str:
    """Resolve the password from the CLI flag, config or environment, or ask."""
    if password_arg is not None:
        return password_arg

    password = server.resolve_password()
    if password is not None:
        return password

    try:
        return getpass.getpass(f"RCON password for {server.host}:{server.port}: ")
    except (EOFError, KeyboardInterrupt):
        print("\nError: no RCON password given.", file=sys.stderr)
        sys.exit(1)


# Exit status per failure kind; anything else exits with 1
_EXIT_CODES: dict[type[RconError], int] = {
    AuthenticationError: 2,
    RconTimeoutError: 3,
}


def _fail(prefix: str, err: RconError) -> NoReturn:
    print(f"{prefix}: {err}", file=sys.stderr)
    sys.exit(_EXIT_CODES.get(type(err), 1))


def run_single_command(
    server: ServerConfig, password: str, command: str, *, timeout: float, color: bool
) -> None:
    """Run one command, print its reply and exit non-zero on failure."""
    try:
        response = run_command(
            server.host, server.port, password, command, timeout=timeout
        )
    except RconError as e:
        _fail("Error", e)
    else:
        if response:
            print(format_response(response, color=color))


def show_players(
    server: ServerConfig, password: str, *, timeout: float, color: bool
) -> None:
    """Print the online players, one per line."""
    try:
        players = fetch_players(server.host, server.port, password, timeout=timeout)
    except RconError as e:
        _fail("Could not fetch players", e)

    if not players:
        print("No players online.")
    for player in players:
        print(format_player(player, color=color))


def main() -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            level=logging.DEBUG,
        )

    config = load_config()
    timeout = args.timeout if args.timeout is not None else config.timeout
    color = not args.no_color

    display_name, server = resolve_server(args.server, config)
    password = resolve_password(args.password, server)

    if args.command is not None:
        run_single_command(server, password, args.command, timeout=timeout, color=color)
        return

    if args.players:
        show_players(server, password, timeout=timeout, color=color)
        return

    print(f"Console for {display_name} ({server.host}:{server.port})")
    print("Type 'players' or 'transcript', Ctrl+D or 'exit' to quit.\n")
    run_repl(
        ConsoleContext(
            server=server, password=password, timeout=timeout, color=color
        )
    )
