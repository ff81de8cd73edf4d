# app/core/auth.py
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from app.core.config import get_settings

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header is turned into our
#   own 401 below instead of FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify an admin's Supabase access token and return its claims.

    Signature and `exp` are checked; `aud` is not, since Supabase
    issues tokens for several audiences.

    Raises:
        HTTPException(401): bad signature, expired, or no secret configured.
    """
    settings = get_settings()
    if not settings.SUPABASE_JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token verification is not configured",
        )
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def is_admin_claims(claims: dict[str, Any]) -> bool:
    """
    Admin if any of:
      - top-level `role` claim is "admin"
      - `app_metadata.role` is "admin"
      - `email` is listed in ADMIN_EMAILS (case-insensitive)
    """
    if claims.get("role") == "admin":
        return True

    app_metadata = claims.get("app_metadata") or {}
    if isinstance(app_metadata, dict) and app_metadata.get("role") == "admin":
        return True

    email = (claims.get("email") or "").lower()
    admin_emails = {e.lower() for e in get_settings().ADMIN_EMAILS}
    return bool(email) and email in admin_emails


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any]:
    """
    Resolve verified JWT claims from the Authorization header.

    Raises:
        HTTPException(401): missing, malformed or expired token.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    claims = decode_access_token(credentials.credentials)
    if not claims.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )
    return claims


def require_admin(claims: dict[str, Any] = Depends(get_current_claims)) -> dict[str, Any]:
    """
    Enforce admin role on editing endpoints.

    Returns:
        The verified claims of the admin.

    Raises:
        HTTPException(403): if the token does not belong to an admin.
    """
    if not is_admin_claims(claims):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return claims
