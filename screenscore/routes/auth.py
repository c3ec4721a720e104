from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from screenscore.database import get_db
from screenscore.schemas.auth import (
    UserSignup,
    UserLogin,
    UserResponse,
    LoginResponse,
    SignupResponse,
    SessionStatus,
    SessionUser,
    MessageResponse,
)
from screenscore.services.auth_service import AuthService
from screenscore.utils.dependencies import get_session_identity, require_session
from screenscore.utils.security import SessionIdentity, attach_session, revoke_session

# Define router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Register a new user
@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserSignup, db: Session = Depends(get_db)):
    """Create an account. 409 if the username or email is taken."""
    user = AuthService.register_user(db, user_data)
    return SignupResponse(message="User created successfully", user_id=user.id)

# Login endpoint
@router.post("/login", response_model=LoginResponse)
def login(credentials: UserLogin, response: Response, db: Session = Depends(get_db)):
    """Login with email and password; sets the session cookie"""
    user = AuthService.authenticate(db, credentials)
    attach_session(response, user.id, user.username)
    return LoginResponse(
        message="Login successful",
        user=SessionUser(user_id=user.id, username=user.username),
    )

@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    """Clear the session cookie. Safe to call when already logged out."""
    revoke_session(response)
    return {"message": "Logged out"}

@router.get("/session", response_model=SessionStatus)
def get_session(identity: Optional[SessionIdentity] = Depends(get_session_identity)):
    """Who is signed in, if anyone. Never 401."""
    if identity is None:
        return SessionStatus(is_logged_in=False)
    return SessionStatus(
        is_logged_in=True,
        user=SessionUser(user_id=identity.user_id, username=identity.username),
    )

# Get current authenticated user
@router.get("/me", response_model=UserResponse)
def get_me(
    identity: SessionIdentity = Depends(require_session),
    db: Session = Depends(get_db)
):
    """Get current authenticated user"""
    return AuthService.get_user(db, identity.user_id)
