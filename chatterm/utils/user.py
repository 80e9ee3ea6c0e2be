import getpass
from typing import Optional

from chatterm.core.config import settings
from chatterm.utils.logger import session_logger


def get_system_username(default: Optional[str] = None) -> str:
    """Return the login name of the current OS user, or a fallback."""
    fallback = default or settings.DEFAULT_USERNAME
    try:
        username = getpass.getuser()
    except (KeyError, OSError, ImportError) as e:
        # getpass raises these when neither the env vars nor the pwd database know the user
        session_logger.warning("Could not determine system username", "USER", error=str(e))
        return fallback
    return username or fallback


def generate_user_id(username: str, prefix: Optional[str] = None) -> str:
    """Derive the stable user id stored with every conversation."""
    if prefix is None:
        prefix = settings.USER_ID_PREFIX
    return f"{prefix}{username}"
