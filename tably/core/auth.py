import hmac
import logging
from typing import Optional
from itsdangerous import URLSafeTimedSerializer, BadSignature
from tably.configs import SEED, ADMIN_USERNAME, ADMIN_PASSWORD
from tably.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SERIALIZER = None  # Will be initialized lazily
COOKIE_NAME = "admin_session"
COOKIE_TTL = 12 * 60 * 60

def _get_serializer():
    """Get or initialize the SERIALIZER lazily."""
    global SERIALIZER
    if SERIALIZER is None:
        SERIALIZER = URLSafeTimedSerializer(SEED, salt="admin-cookie")
    return SERIALIZER

def check_credentials(username: str, password: str) -> bool:
    return (
        hmac.compare_digest((username or "").encode(), ADMIN_USERNAME.encode())
        and hmac.compare_digest((password or "").encode(), ADMIN_PASSWORD.encode())
    )

def login(username: str, password: str) -> str:
    """Returns a signed admin session token for valid credentials."""
    if not check_credentials(username, password):
        logger.warning(f"Failed admin login for {username!r}")
        raise AuthenticationError("Invalid credentials")
    return create_session_cookie(username)

def create_session_cookie(username: str) -> str:
    return _get_serializer().dumps({"admin": username})

def verify_session_cookie(session) -> Optional[str]:
    """Returns the admin username stored in a valid, unexpired cookie."""
    try:
        if not session:
            return None
        data = _get_serializer().loads(session, max_age=COOKIE_TTL)
        return data.get("admin") if isinstance(data, dict) else None
    except BadSignature:
        return None
