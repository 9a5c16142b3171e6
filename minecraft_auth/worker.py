"""Background execution of the authentication flows

Callers that must stay responsive (a UI thread, the CLI spinner) submit flows
here and get a ``concurrent.futures.Future`` resolving to an AuthResult.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Awaitable, Callable, Optional

from .errors import AuthError, InternalError
from .models import AuthResult
from .orchestrator import AuthOrchestrator


logger = logging.getLogger(__name__)

ResultCallback = Callable[[AuthResult], None]


class BackgroundAuthenticator:
    """Runs an AuthOrchestrator on a dedicated event loop thread"""

    def __init__(self, orchestrator: Optional[AuthOrchestrator] = None):
        """Initialize and start the worker thread

        Args:
            orchestrator: Orchestrator to drive (creates new if None)
        """
        self.orchestrator = orchestrator or AuthOrchestrator()
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="auth-worker", daemon=True)
        self._thread.start()

    def _run_loop(self):
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _run(self, flow: Callable[[], Awaitable[str]]) -> AuthResult:
        try:
            username = await flow()
        except AuthError as e:
            logger.error(f"Authentication flow failed ({e.kind.value}): {e}")
            return AuthResult(error=e)
        except Exception as e:
            logger.exception("Authentication flow crashed")
            return AuthResult(error=InternalError(f"Unexpected error: {e!r}"))
        return AuthResult(username=username, persisted=self.orchestrator.session_persisted)

    def _submit(
        self,
        flow: Callable[[], Awaitable[str]],
        callback: Optional[ResultCallback],
    ) -> "concurrent.futures.Future[AuthResult]":
        if self._loop.is_closed():
            raise RuntimeError("BackgroundAuthenticator is closed")

        future = asyncio.run_coroutine_threadsafe(self._run(flow), self._loop)

        if callback is not None:
            def _deliver(done: concurrent.futures.Future):
                if done.cancelled():
                    logger.info("Authentication flow cancelled")
                    return
                error = done.exception()
                if error is not None:
                    callback(AuthResult(error=InternalError(f"Unexpected error: {error!r}")))
                    return
                callback(done.result())

            future.add_done_callback(_deliver)

        return future

    def start_authenticate(self, callback: Optional[ResultCallback] = None):
        """Start the interactive flow; cancel the returned future to abort"""
        return self._submit(self.orchestrator.authenticate, callback)

    def start_refresh(self, callback: Optional[ResultCallback] = None):
        """Start the silent refresh flow"""
        return self._submit(self.orchestrator.refresh_and_authenticate, callback)

    def close(self, timeout: float = 5.0):
        """Cancel running flows and stop the worker thread"""
        if self._loop.is_closed():
            return

        async def _cancel_pending():
            current = asyncio.current_task()
            tasks = [task for task in asyncio.all_tasks() if task is not current]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        try:
            asyncio.run_coroutine_threadsafe(_cancel_pending(), self._loop).result(timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("Timed out cancelling authentication flows")

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        if not self._thread.is_alive():
            self._loop.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
