"""
Account and session endpoints.
Register and login return a bearer token used by every other endpoint.
"""
from fastapi import APIRouter, Depends, Response

from daycare_desk.api.deps import bearer_token, get_guard, require_user
from daycare_desk.schemas.records import User
from daycare_desk.schemas.requests import Credentials, SessionResponse
from daycare_desk.security.guard import AccessGuard

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=SessionResponse, status_code=201)
def register(request: Credentials, guard: AccessGuard = Depends(get_guard)):
    """Create a staff account (password of at least 6 characters) and sign it in."""
    user, token = guard.register(request.username, request.password)
    return {"token": token, "user": user}


@router.post("/login", response_model=SessionResponse)
def login(request: Credentials, guard: AccessGuard = Depends(get_guard)):
    user, token = guard.login(request.username, request.password)
    return {"token": token, "user": user}


@router.post("/logout", status_code=204)
def logout(token: str = Depends(bearer_token), guard: AccessGuard = Depends(get_guard)):
    guard.logout(token)
    return Response(status_code=204)


@router.get("/me", response_model=User)
def me(user: User = Depends(require_user)):
    return user
