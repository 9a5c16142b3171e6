import json
import logging
import os
import platform
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from minecraft_auth.models import Session
from settings import SESSION_CONFIG_FILE

logger = logging.getLogger(__name__)

# Field names inside the launcher's config record
USERNAME_KEY = "sessionUsername"
UUID_KEY = "sessionUuid"
ACCESS_TOKEN_KEY = "sessionAccessToken"
REFRESH_TOKEN_KEY = "sessionRefreshToken"
SESSION_KEYS = (USERNAME_KEY, UUID_KEY, ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY)


class SessionStore:
    """Durable session record kept inside the launcher's JSON config file

    Other keys in the config file belong to the host application and are
    preserved on every write.
    """

    def __init__(self, config_file: Optional[str] = None):
        self.config_path = Path(config_file if config_file else SESSION_CONFIG_FILE)
        self._lock = threading.Lock()
        self._ensure_secure_directory()

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.config_path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def _read_record(self) -> Optional[Dict[str, Any]]:
        """Read the whole config record, None if missing or unreadable"""
        if not self.config_path.exists():
            return None

        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable config file {self.config_path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_path}: root is not an object")
            return None
        return data

    def _write_record(self, data: Dict[str, Any]):
        """Replace the config file in one step so readers never see a torn record"""
        self._ensure_secure_directory()
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.config_path.name}.", suffix=".tmp", dir=str(self.config_path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            # Set file permissions to 600 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.config_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _update_session_fields(self, fields: Dict[str, str]):
        with self._lock:
            data = self._read_record() or {}
            data.update(fields)
            self._write_record(data)

    def save(self, session: Session):
        """Persist all four session fields at once"""
        self._update_session_fields({
            USERNAME_KEY: session.username,
            UUID_KEY: session.account_id,
            ACCESS_TOKEN_KEY: session.access_token,
            REFRESH_TOKEN_KEY: session.refresh_token,
        })
        logger.info(f"Session saved for user: {session.username}")

    def load(self) -> Tuple[Optional[Session], bool]:
        """Load the stored session

        Returns:
            Tuple of (session, found). A missing or corrupt record, or one
            whose session fields are all empty, is reported as not found.
        """
        with self._lock:
            data = self._read_record()

        if not data:
            return None, False

        values = {}
        for key in SESSION_KEYS:
            value = data.get(key, "")
            values[key] = value if isinstance(value, str) else ""

        if not any(values.values()):
            return None, False

        session = Session(
            username=values[USERNAME_KEY],
            account_id=values[UUID_KEY],
            access_token=values[ACCESS_TOKEN_KEY],
            refresh_token=values[REFRESH_TOKEN_KEY],
        )
        return session, True

    def clear(self):
        """Reset the session fields to empty strings and persist"""
        self._update_session_fields({key: "" for key in SESSION_KEYS})
        logger.info("Session cleared")

    def has_valid(self) -> bool:
        """True if a refresh token is stored"""
        session, found = self.load()
        return found and session.can_refresh

    def get_status(self) -> Dict[str, Any]:
        """Get session status without exposing secrets"""
        session, found = self.load()
        if not found or not session.can_refresh:
            return {
                "has_session": False,
                "username": None,
                "account_id": None,
                "has_access_token": False,
                "config_file": str(self.config_path),
            }

        return {
            "has_session": True,
            "username": session.username,
            "account_id": session.account_id,
            "has_access_token": bool(session.access_token),
            "config_file": str(self.config_path),
        }

    @property
    def config_file(self) -> Path:
        """Get the config file path"""
        return self.config_path
