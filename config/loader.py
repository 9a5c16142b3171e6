"""Settings lookup: environment variables, then a .env file, then defaults"""

import logging
import os
from pathlib import Path
from typing import Any, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Resolves settings, coercing values to the type of their default"""

    def __init__(self, env_path: Optional[str] = None):
        self.env_path = Path(env_path) if env_path else Path(".env")
        if self.env_path.exists():
            # load_dotenv never overrides variables already set in the environment
            load_dotenv(dotenv_path=self.env_path)
            logger.debug(f"Loaded environment variables from {self.env_path}")

    def get(self, env_var: str, default: Any) -> Any:
        raw = os.getenv(env_var)
        if raw is None:
            return _expand_home(default)

        # bool before int: bool is an int subclass
        if isinstance(default, bool):
            return raw.lower() in ("true", "1", "yes")
        if isinstance(default, (int, float)):
            try:
                return type(default)(raw)
            except ValueError:
                logger.warning(f"Ignoring {env_var}={raw!r}, expected {type(default).__name__}; using {default}")
                return default
        return _expand_home(raw)


def _expand_home(value):
    if isinstance(value, str) and value.startswith("~/"):
        return str(Path(value).expanduser())
    return value


_config_loader = None

def get_config_loader() -> ConfigLoader:
    """Get or create the shared ConfigLoader"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
