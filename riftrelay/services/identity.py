"""Player identity checks shared by mutating operations."""
from riftrelay.config import get_settings
from riftrelay.utils.exceptions import AuthorizationError


def is_anonymous(username: str) -> bool:
    return not username or username == get_settings().anonymous_username


def ensure_player(username: str) -> None:
    """Reject the anonymous sentinel before any store access."""
    if is_anonymous(username):
        raise AuthorizationError("login_required")
