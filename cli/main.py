"""CLI entry point and argument parsing"""

import sys
import argparse
from rich.console import Console

from auth_cli import CLIAuthFlow
from cli.debug_setup import setup_logging
from cli.status_display import get_auth_status, show_session_status
from minecraft_auth import AuthOrchestrator, BackgroundAuthenticator
from utils.storage import SessionStore


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Minecraft Microsoft account login")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", default=None, help="Override the launcher config file holding the session")
    parser.add_argument("--no-browser", action="store_true", help="Don't open the verification page automatically")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("login", help="Log in with a device code")
    subparsers.add_parser("refresh", help="Log in again with the saved refresh token")
    subparsers.add_parser("logout", help="Forget the saved session")
    subparsers.add_parser("status", help="Show the saved session")
    subparsers.add_parser("auto", help="Refresh the saved session, falling back to a device code login")
    return parser


def run_command(command: str, flow: CLIAuthFlow, store: SessionStore) -> int:
    if command == "status":
        show_session_status(store, flow.console)
        return 0

    if command == "logout":
        flow.logout()
        return 0

    if command == "login":
        return 0 if flow.authenticate() else 1

    if command == "refresh":
        return 0 if flow.refresh() else 1

    # auto: silent first, interactive only when the saved login can't be used
    status, message = get_auth_status(store)
    flow.console.print(f"[dim]{status}: {message}[/dim]")
    if status != "NO AUTH":
        if flow.refresh():
            return 0
        result = flow.last_result
        if result is None or not result.error.requires_login:
            return 1
    return 0 if flow.authenticate() else 1


def main():
    """Entry point for the CLI"""
    parser = build_parser()
    args = parser.parse_args()
    command = args.command or "auto"

    log_file = setup_logging(args.debug)
    if log_file:
        console.print(f"[yellow]Debug mode enabled - verbose logging will be written to {log_file}[/yellow]")

    exit_code = 1
    try:
        store = SessionStore(args.config)
        orchestrator = AuthOrchestrator(store=store)
        with BackgroundAuthenticator(orchestrator) as worker:
            flow = CLIAuthFlow(worker, console=console, open_browser=not args.no_browser)
            exit_code = run_command(command, flow, store)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
