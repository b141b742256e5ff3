"""
FastAPI dependencies resolving the components attached to ``app.state``.
"""
from fastapi import Depends, Header, Request

from daycare_desk.domain.services import LifecycleService
from daycare_desk.errors import AuthError
from daycare_desk.schemas.records import User
from daycare_desk.security.guard import AccessGuard


def get_guard(request: Request) -> AccessGuard:
    return request.app.state.guard


def bearer_token(authorization: str = Header(default="")) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization.startswith("Bearer "):
        raise AuthError("Missing token")
    return authorization.split(" ", 1)[1].strip()


def require_user(token: str = Depends(bearer_token), guard: AccessGuard = Depends(get_guard)) -> User:
    return guard.current_user(token)


def get_lifecycle(request: Request, _: User = Depends(require_user)) -> LifecycleService:
    """
    Resolve the lifecycle service for an authenticated caller.
    Runs the day rollover check first so the daily view never straddles midnight.
    """
    lifecycle: LifecycleService = request.app.state.lifecycle
    lifecycle.reconcile_day()
    return lifecycle
