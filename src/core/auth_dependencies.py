"""
FastAPI dependencies for JWT authentication.
Resolves the acting admin from a bearer token or the session cookie.
"""
import jwt
from fastapi import Cookie, Header, HTTPException, status
from typing import Annotated, Optional
from src.core.config import settings
from src.models.upload_request import CurrentUser


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _extract_token(authorization: Optional[str], session_cookie: Optional[str]) -> str:
    if authorization:
        if not authorization.startswith('Bearer '):
            raise _unauthorized("Invalid authorization header format")
        return authorization[7:]

    if session_cookie:
        return session_cookie

    raise _unauthorized("Missing authorization header")


def verify_token(
    authorization: Optional[str] = Header(None),
    session_cookie: Annotated[Optional[str], Cookie(alias=settings.auth_cookie_name)] = None
) -> CurrentUser:
    """
    Verify the caller's JWT.

    The Authorization header wins when present; otherwise the session
    cookie set at login is used.

    Returns:
        CurrentUser built from the token's subject and role claims

    Raises:
        HTTPException: If token is missing, invalid, or expired
    """
    token = _extract_token(authorization, session_cookie)

    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    # Session cookies carry the user id as "id" rather than "sub"
    user_id = payload.get('sub') or payload.get('id')
    if not user_id:
        raise _unauthorized("Invalid token payload")

    return CurrentUser(id=str(user_id), role=payload.get('role'))
