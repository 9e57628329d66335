"""
api/routes/v1/auth.py -- Session and password reset endpoints.

Routes:
  POST /api/v1/auth/signup          -- create account; sets session cookie
  POST /api/v1/auth/signin          -- password login; sets session cookie
  POST /api/v1/auth/signout         -- clears cookie; always 200
  GET  /api/v1/auth/me              -- current user, or null when anonymous
  POST /api/v1/auth/request-reset   -- mail a reset link
  POST /api/v1/auth/reset-password  -- consume reset token; sets session cookie

The handlers are thin: SessionManager and PasswordResetFlow own the rules
and raise AuthError subclasses, which api/main.py renders.

Security:
  signin and request-reset are rate-limited per client IP.
  Cache-Control: no-store on every response that carries a session cookie.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter, reset_limit, signin_limit
from api.models import (
    MessageResponse,
    RequestResetRequest,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    UserResponse,
)
from auth.dependencies import try_get_current_user
from auth.models import User
from auth.reset import PasswordResetFlow
from auth.session import SessionManager

# Auth policy:
# - every route here is public; /auth/me reports anonymity as null
router = APIRouter()


def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"


@router.post("/auth/signup", response_model=UserResponse, status_code=201)
def signup(request: Request, response: Response, body: SignupRequest) -> UserResponse:
    """Create a USER account and sign it in."""
    sessions: SessionManager = request.app.state.sessions
    user = sessions.signup(response, body.email, body.password, body.name)
    _no_store(response)
    return UserResponse.from_user(user)


@limiter.limit(signin_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/signin", response_model=UserResponse)
def signin(request: Request, response: Response, body: SigninRequest) -> UserResponse:
    """Authenticate with email and password; set the session cookie.

    Unknown email -> 404 not_found, wrong password -> 401 invalid_credentials.
    """
    sessions: SessionManager = request.app.state.sessions
    user = sessions.signin(response, body.email, body.password)
    _no_store(response)
    return UserResponse.from_user(user)


@router.post("/auth/signout", response_model=MessageResponse)
def signout(request: Request, response: Response) -> MessageResponse:
    """Clear the session cookie. Succeeds whether or not a session existed."""
    sessions: SessionManager = request.app.state.sessions
    sessions.signout(response)
    return MessageResponse(message="Goodbye!")


@router.get("/auth/me", response_model=Optional[UserResponse])
def me(current_user: Optional[User] = Depends(try_get_current_user)) -> Optional[UserResponse]:
    """Return the signed-in user, or null for anonymous callers."""
    if current_user is None:
        return None
    return UserResponse.from_user(current_user)


@limiter.limit(reset_limit)
@router.post("/auth/request-reset", response_model=MessageResponse)
def request_reset(request: Request, body: RequestResetRequest) -> MessageResponse:
    """Mail a password reset link to a registered email."""
    flow: PasswordResetFlow = request.app.state.reset_flow
    return MessageResponse(message=flow.request_reset(body.email))


@router.post("/auth/reset-password", response_model=UserResponse)
def reset_password(request: Request, response: Response, body: ResetPasswordRequest) -> UserResponse:
    """Set a new password with a reset token, then sign in."""
    flow: PasswordResetFlow = request.app.state.reset_flow
    user = flow.complete_reset(response, body.reset_token, body.password, body.confirm_password)
    _no_store(response)
    return UserResponse.from_user(user)
