from passlib.context import CryptContext
from jose import jwt
from jose.exceptions import JOSEError
from fastapi import Response
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from dotenv import load_dotenv
import os
import logging

# Load environment variables
load_dotenv()
logger = logging.getLogger(__name__)

# Security settings
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", "60"))
SESSION_COOKIE_NAME = "session"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class SessionConfigError(RuntimeError):
    """Raised when session tokens cannot be signed (missing secret)."""


@dataclass(frozen=True)
class SessionIdentity:
    """Who the caller is, as recovered from a verified session token."""
    user_id: int
    username: str
    issued_at: datetime
    expires_at: datetime


BCRYPT_MAX_BYTES = 72


def _bcrypt_secret(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes of its input
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


# Password hashing and verification
def hash_password(password: str) -> str:
    """Hash a password with bcrypt"""
    return pwd_context.hash(_bcrypt_secret(password))

# Password verification
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(_bcrypt_secret(plain_password), hashed_password)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _signing_key(secret: Optional[str]) -> str:
    key = SECRET_KEY if secret is None else secret
    if not key:
        raise SessionConfigError("SECRET_KEY is not configured")
    return key


def ensure_session_secret() -> None:
    """Fail fast at startup when tokens could not be signed."""
    _signing_key(None)


# Session token creation
def issue_session_token(
    user_id: int,
    username: str,
    now: Optional[datetime] = None,
    secret: Optional[str] = None,
) -> Tuple[str, datetime]:
    """
    Sign a session token for an already-authenticated user.

    Returns:
        (token, expires_at) where expires_at is exactly SESSION_TTL_MINUTES
        after issuance, truncated to whole seconds as stored in the token.

    Raises:
        SessionConfigError: if no signing secret is configured
    """
    key = _signing_key(secret)
    issued = int((now or _utcnow()).timestamp())
    expires = issued + SESSION_TTL_MINUTES * 60
    claims = {
        "userId": user_id,
        "username": username,
        "iat": issued,
        "exp": expires,
    }
    token = jwt.encode(claims, key, algorithm=ALGORITHM)
    return token, datetime.fromtimestamp(expires, tz=timezone.utc)


# Session token verification
def resolve_session(
    token: Optional[str],
    now: Optional[datetime] = None,
    secret: Optional[str] = None,
) -> Optional[SessionIdentity]:
    """
    Recover the caller's identity from a session token.

    Every failure (missing, malformed, forged, wrong algorithm, expired,
    incomplete payload) collapses to None. Never raises.
    """
    if not token:
        return None

    key = SECRET_KEY if secret is None else secret
    if not key:
        logger.error("Session token received but SECRET_KEY is not configured")
        return None

    try:
        # Expiry is checked below against the supplied clock
        payload = jwt.decode(token, key, algorithms=[ALGORITHM], options={"verify_exp": False})
    except (JOSEError, ValueError, TypeError) as e:
        logger.debug(f"Rejected session token: {str(e)}")
        return None

    user_id = payload.get("userId")
    username = payload.get("username")
    issued = payload.get("iat")
    expires = payload.get("exp")

    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    if not isinstance(username, str) or not username:
        return None
    if not isinstance(expires, (int, float)) or not isinstance(issued, (int, float)):
        return None

    current = (now or _utcnow()).timestamp()
    if expires <= current:
        logger.debug(f"Expired session token for user {user_id}")
        return None

    return SessionIdentity(
        user_id=user_id,
        username=username,
        issued_at=datetime.fromtimestamp(issued, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
    )


# Cookie handling
def attach_session(response: Response, user_id: int, username: str) -> datetime:
    """Issue a token and store it in the session cookie, replacing any previous one."""
    token, expires_at = issue_session_token(user_id, username)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=SESSION_TTL_MINUTES * 60,
        expires=expires_at,
        path="/",
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
    return expires_at


def revoke_session(response: Response) -> None:
    """
    Overwrite the session cookie with an empty, already-expired value.

    There is no server-side blacklist: a copied token stays valid until
    its own expiry.
    """
    response.set_cookie(
        SESSION_COOKIE_NAME,
        "",
        max_age=0,
        expires=_EPOCH,
        path="/",
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
