import datetime
from typing import Optional

import jwt

ALGORITHM = "HS256"


def create_token(user_id: str, session_id: str, secret_key: str, expire_minutes: int) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": user_id,
        "jti": session_id,
        "iat": now,
        "exp": now + datetime.timedelta(minutes=expire_minutes),
    }
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def decode_token(token: str, secret_key: str) -> Optional[dict]:
    """Return the token claims, or None if the token is malformed, forged or expired."""
    try:
        return jwt.decode(token, secret_key, algorithms=[ALGORITHM], options={"require": ["sub", "jti", "exp"]})
    except jwt.PyJWTError:
        return None
