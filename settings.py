from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("LOG_LEVEL", "info")
DEBUG_LOG_FILE = config.get("DEBUG_LOG_FILE", "auth_debug.log")

# Microsoft identity platform (device code flow)
# The poll request must not resend the scope; it was consented when the
# device code was issued.
DEVICE_CODE_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/devicecode"
MICROSOFT_TOKEN_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
CLIENT_ID = config.get("MSA_CLIENT_ID", "031fb156-0927-4ff1-9e7e-0c5de9bfa474")
SCOPE = config.get("MSA_SCOPE", "XboxLive.Signin offline_access")

# Xbox Live / XSTS (hardcoded - not user configurable)
XBOX_AUTH_URL = "https://user.auth.xboxlive.com/user/authenticate"
XBOX_XSTS_URL = "https://xsts.auth.xboxlive.com/xsts/authorize"
XBOX_RELYING_PARTY = "http://auth.xboxlive.com"
XSTS_RELYING_PARTY = "rp://api.minecraftservices.com/"

# Minecraft services (hardcoded - not user configurable)
MINECRAFT_AUTH_URL = "https://api.minecraftservices.com/authentication/login_with_xbox"
MINECRAFT_PROFILE_URL = "https://api.minecraftservices.com/minecraft/profile"

# Timeout configuration
# Request timeout: Total timeout for every single round-trip in the chain
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 30.0)

# Device code polling
# Defaults apply when the provider omits expires_in / interval
DEFAULT_DEVICE_CODE_EXPIRES_IN = 900
DEFAULT_POLL_INTERVAL = 5
SLOW_DOWN_INCREMENT = config.get("SLOW_DOWN_INCREMENT", 5)
MAX_POLL_INTERVAL = config.get("MAX_POLL_INTERVAL", 60)

# Session storage (the launcher's config record)
SESSION_CONFIG_FILE = config.get(
    "SESSION_CONFIG_FILE",
    str(Path.home() / ".minecraft-launcher" / "config.json"),
)
