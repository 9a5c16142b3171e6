"""Status display functionality for CLI"""

from rich.table import Table
from utils.storage import SessionStore


def show_session_status(store: SessionStore, console):
    """
    Display the saved session status

    Args:
        store: SessionStore instance
        console: Rich console for output
    """
    status = store.get_status()

    table = Table(title="Session Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Logged In", "Yes" if status["has_session"] else "No")

    if status["has_session"]:
        table.add_row("Username", status["username"] or "-")
        table.add_row("Account ID", status["account_id"] or "-")
        table.add_row("Access Token", "Present" if status["has_access_token"] else "Missing")

    table.add_row("Config File", status["config_file"])

    console.print(table)


def get_auth_status(store: SessionStore) -> tuple[str, str]:
    """
    Get a one-line authentication status

    Args:
        store: SessionStore instance

    Returns:
        Tuple of (status, detail_message)
    """
    status = store.get_status()

    if not status["has_session"]:
        return "NO AUTH", "No saved session, please log in"

    return "SAVED", f"Logged in as {status['username']}"
