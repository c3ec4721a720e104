from fastapi import Depends, HTTPException, Request, status
from typing import Optional
from screenscore.utils.security import SESSION_COOKIE_NAME, SessionIdentity, resolve_session


# Dependency to get the caller's identity, or None when anonymous
def get_session_identity(request: Request) -> Optional[SessionIdentity]:
    return resolve_session(request.cookies.get(SESSION_COOKIE_NAME))


# Dependency for endpoints that need a signed-in user
def require_session(
    identity: Optional[SessionIdentity] = Depends(get_session_identity),
) -> SessionIdentity:
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return identity
