"""
Session-based access control in front of every lifecycle and settings operation.
A session is a signed token whose id must still exist in the store, so logging
out revokes it before it expires.
"""
import datetime
import logging
import uuid
from typing import Optional, Tuple

from daycare_desk.config import MIN_PASSWORD_LENGTH
from daycare_desk.data.store import RecordStore
from daycare_desk.errors import AuthError, ValidationError
from daycare_desk.schemas.records import AuthSession, User
from daycare_desk.security.password import hash_password, verify_password
from daycare_desk.security.token import create_token, decode_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"

# Checked against when the username is unknown, so both failures cost one hash
_UNKNOWN_USER_HASH = hash_password("unknown-user")


class AccessGuard:
    def __init__(self, store: RecordStore, secret_key: str, token_expire_minutes: int):
        self._store = store
        self._secret_key = secret_key
        self._expire_minutes = token_expire_minutes

    def _open_session(self, user: User) -> str:
        auth_session = AuthSession(
            id=str(uuid.uuid4()),
            user_id=user.id,
            created_at=datetime.datetime.now(datetime.timezone.utc),
        )
        self._store.add_session(auth_session)
        return create_token(user.id, auth_session.id, self._secret_key, self._expire_minutes)

    def register(self, username: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: missing username/password or password too short
            ConflictError: username already taken
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        user = User(
            id=str(uuid.uuid4()),
            username=username,
            password_hash=hash_password(password),
            created_at=datetime.datetime.now(datetime.timezone.utc),
        )
        self._store.add_user(user)
        logger.info("Registered user %s", username)
        return user, self._open_session(user)

    def login(self, username: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """Unknown users and wrong passwords fail with the same message and the same hashing cost."""
        user = self._store.get_user_by_username((username or "").strip())
        if user is None:
            verify_password(password or "", _UNKNOWN_USER_HASH)
            raise AuthError(INVALID_CREDENTIALS)
        if not verify_password(password or "", user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)
        return user, self._open_session(user)

    def logout(self, token: str) -> None:
        claims = decode_token(token, self._secret_key)
        if claims:
            self._store.delete_session(claims["jti"])

    def current_user(self, token: Optional[str]) -> User:
        if not token:
            raise AuthError("Not authenticated")
        claims = decode_token(token, self._secret_key)
        if not claims or self._store.get_session(claims["jti"]) is None:
            raise AuthError("Session is invalid or has ended")
        user = self._store.get_user(claims["sub"])
        if user is None:
            raise AuthError("Session is invalid or has ended")
        return user
