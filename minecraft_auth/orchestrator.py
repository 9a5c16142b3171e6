"""Authentication orchestrator

Sequences the pipeline stages into the interactive (device code) flow and the
silent (refresh token) flow, and owns the single in-memory session.
"""

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from .device_code import request_device_code
from .errors import AlreadyInProgressError, InvalidGrantError, NoSessionError, ProviderError
from .http import create_client
from .minecraft import fetch_profile, login_with_xbox
from .models import DeviceCodeChallenge, ProviderTokenPair, Session
from .token_poller import poll_for_token
from .token_refresh import refresh_provider_tokens
from .xbox import authenticate_with_xbox_live, authorize_xsts


logger = logging.getLogger(__name__)


class AuthOrchestrator:
    """Runs the Microsoft → Xbox Live → XSTS → Minecraft chain

    Interactive attempts are serialized: a second ``authenticate`` while one
    is running fails fast with AlreadyInProgressError. The session is only
    persisted after the profile lookup succeeds.
    """

    def __init__(
        self,
        store=None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        on_device_code: Optional[Callable[[DeviceCodeChallenge], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the orchestrator

        Args:
            store: SessionStore instance (creates new if None)
            client_factory: Creates the HTTP client for one chain attempt
            on_device_code: Called with the challenge so it can be shown to the user
            sleep: Awaitable sleep used between token polls
            clock: Monotonic clock used for the device code deadline
        """
        if store is None:
            from utils.storage import SessionStore
            store = SessionStore()

        self.store = store
        self.on_device_code = on_device_code
        self._client_factory = client_factory or create_client
        self._sleep = sleep
        self._clock = clock

        self._interactive_lock = threading.Lock()
        self._session_lock = threading.Lock()
        self._session: Optional[Session] = None
        # False after a login whose session could not be written to disk
        self.session_persisted = True

        # Restore a saved session so the launcher can start without logging in
        session, found = self.store.load()
        if found and session.can_refresh:
            self._session = session
            logger.info(f"Restored saved session: {session.username}")

    @property
    def is_authenticating(self) -> bool:
        """True while an interactive attempt is in flight"""
        return self._interactive_lock.locked()

    @property
    def is_logged_in(self) -> bool:
        return self.current_session()[1]

    def current_session(self) -> Tuple[Optional[Session], bool]:
        """Snapshot of the in-memory session

        Returns:
            Tuple of (session, present)
        """
        with self._session_lock:
            session = self._session
        return session, session is not None

    async def authenticate(self) -> str:
        """Run the interactive device code flow

        Returns:
            Minecraft display name

        Raises:
            AlreadyInProgressError: Another interactive attempt is running
            AuthError: Any classified pipeline failure
        """
        if not self._interactive_lock.acquire(blocking=False):
            logger.warning("Authentication already in progress, rejecting second attempt")
            raise AlreadyInProgressError("An authentication attempt is already in progress")

        try:
            logger.info("=== Starting Microsoft account login (device code flow) ===")
            async with self._client_factory() as client:
                challenge = await request_device_code(client, clock=self._clock)
                self._notify_device_code(challenge)

                logger.info("Waiting for the user to complete login in the browser...")
                tokens = await poll_for_token(client, challenge, sleep=self._sleep, clock=self._clock)
                logger.info("Microsoft access token acquired")

                return await self._complete_chain(client, tokens)
        finally:
            self._interactive_lock.release()

    async def refresh_and_authenticate(self) -> str:
        """Run the silent flow from the stored refresh token

        Returns:
            Minecraft display name

        Raises:
            NoSessionError: Nothing stored to refresh from
            InvalidGrantError: Refresh token revoked; the session has been cleared
            AuthError: Any other classified pipeline failure
        """
        refresh_token = self._stored_refresh_token()
        if not refresh_token:
            raise NoSessionError("No saved session, please log in")

        logger.info("Attempting automatic login with saved refresh token...")
        try:
            async with self._client_factory() as client:
                tokens = await refresh_provider_tokens(client, refresh_token)
                return await self._complete_chain(client, tokens)
        except InvalidGrantError:
            logger.warning("Refresh token rejected, clearing saved session")
            self._clear_session()
            raise
        except ProviderError as e:
            e.during_refresh = True
            raise

    def logout(self):
        """Forget the session in memory and on disk"""
        self._clear_session()
        logger.info("Logged out of Microsoft account")

    def _stored_refresh_token(self) -> str:
        session, present = self.current_session()
        if present and session.can_refresh:
            return session.refresh_token

        session, found = self.store.load()
        if found and session.can_refresh:
            return session.refresh_token
        return ""

    def _clear_session(self):
        with self._session_lock:
            self._session = None
        try:
            self.store.clear()
        except OSError as e:
            logger.error(f"Failed to clear saved session: {e}")

    def _notify_device_code(self, challenge: DeviceCodeChallenge):
        logger.info(f"Device code issued, user code {challenge.user_code} at {challenge.verification_uri}")
        if self.on_device_code is None:
            return
        try:
            self.on_device_code(challenge)
        except Exception as e:
            # Presentation failures must not abort the login
            logger.error(f"Device code callback failed: {e}")

    async def _complete_chain(self, client: httpx.AsyncClient, tokens: ProviderTokenPair) -> str:
        xbox_token = await authenticate_with_xbox_live(client, tokens.access_token)
        logger.info("Step 1/4: Xbox Live token acquired")

        security_token = await authorize_xsts(client, xbox_token)
        logger.info("Step 2/4: XSTS token acquired")

        access_token = await login_with_xbox(client, security_token)
        logger.info("Step 3/4: Minecraft access token acquired")

        profile = await fetch_profile(client, access_token)
        logger.info(f"Step 4/4: Profile resolved for {profile.name}")

        session = Session(
            username=profile.name,
            account_id=profile.id,
            access_token=access_token,
            refresh_token=tokens.refresh_token,
        )

        try:
            self.store.save(session)
            self.session_persisted = True
        except OSError as e:
            logger.error(f"Failed to save session, it will only last until exit: {e}")
            self.session_persisted = False

        with self._session_lock:
            self._session = session

        logger.info("=== Authentication complete, ready to launch ===")
        return profile.name
