import webbrowser
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from minecraft_auth import AuthResult, BackgroundAuthenticator, DeviceCodeChallenge, ErrorKind


class CLIAuthFlow:
    """Handle the device code login and silent refresh in a terminal"""

    def __init__(self, worker: BackgroundAuthenticator, console: Optional[Console] = None, open_browser: bool = True):
        self.worker = worker
        self.console = console or Console()
        self.open_browser = open_browser
        # Outcome of the last flow, None if the user cancelled it
        self.last_result: Optional[AuthResult] = None
        self.worker.orchestrator.on_device_code = self._show_device_code

    def _show_device_code(self, challenge: DeviceCodeChallenge):
        """Show the user code; called from the worker thread"""
        if self.open_browser and webbrowser.open(challenge.verification_uri):
            self.console.print("[green][OK][/green] Browser opened successfully")
        else:
            self.console.print("[yellow]Please open this URL manually:[/yellow]")

        self.console.print(
            Panel.fit(
                f"Open [bold]{challenge.verification_uri}[/bold]\n"
                f"and enter the code:\n\n[bold cyan]{challenge.user_code}[/bold cyan]",
                title="Microsoft Login",
            )
        )

    def _wait(self, future, status_message: str) -> Optional[AuthResult]:
        self.last_result = None
        try:
            with self.console.status(status_message):
                self.last_result = future.result()
        except KeyboardInterrupt:
            future.cancel()
            self.console.print("\n[yellow]Authentication cancelled by user[/yellow]")
        return self.last_result

    def _report(self, result: AuthResult) -> bool:
        if result.ok:
            self.console.print(f"[green][OK][/green] Logged in as [bold]{result.username}[/bold]")
            if not result.persisted:
                self.console.print("[yellow]Could not save the session, you will need to log in again next time[/yellow]")
            return True

        error = result.error
        self.console.print(f"[red][ERROR][/red] {escape(str(error))}")

        if error.kind is ErrorKind.PROFILE:
            self.console.print("This Microsoft account does not own Minecraft Java Edition.")
        elif error.requires_login:
            self.console.print("Your saved login is no longer valid. Please run [bold]login[/bold] again.")
        elif error.retryable:
            self.console.print("[dim]This looks temporary, please try again.[/dim]")
        return False

    def authenticate(self) -> bool:
        """
        Run the interactive device code login
        Returns True if successful, False otherwise
        """
        self.console.print("\n[bold]Starting Microsoft account login...[/bold]")
        result = self._wait(self.worker.start_authenticate(), "Waiting for you to finish login in the browser...")
        if result is None:
            return False
        return self._report(result)

    def refresh(self) -> bool:
        """
        Log in again with the saved refresh token
        Returns True if successful, False otherwise
        """
        result = self._wait(self.worker.start_refresh(), "Refreshing saved session...")
        if result is None:
            return False
        return self._report(result)

    def logout(self):
        self.worker.orchestrator.logout()
        self.console.print("[green][OK][/green] Logged out")
