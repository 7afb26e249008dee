"""Authentication dependency for protected routes"""
from fastapi import HTTPException, Cookie, Depends, Request
from typing import Optional, Dict, Any
from ..utils.auth import decode_access_token


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={
            "error": "Unauthorized",
            "message": message,
            "details": {}
        },
        headers={"WWW-Authenticate": "Bearer"}
    )


async def get_current_user(request: Request, access_token: Optional[str] = Cookie(None)) -> Dict[str, Any]:
    """
    Dependency to get the current authenticated user from the JWT

    The token comes from the access_token cookie or, failing that, an
    Authorization: Bearer header. Accounts live in the account service, so
    the user is identified by the token's "sub" claim alone.

    Returns:
        {"id": user_id}

    Raises:
        HTTPException: 401 if the token is missing, invalid or has no subject
    """
    if not access_token:
        auth_header = request.headers.get("authorization")
        if auth_header and auth_header.startswith("Bearer "):
            access_token = auth_header.split(" ", 1)[1].strip()

    if not access_token:
        raise _unauthorized("Missing authentication token")

    payload = decode_access_token(access_token)
    if not payload:
        raise _unauthorized("Invalid or expired authentication token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    return {"id": str(user_id)}


def require_auth(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """
    Dependency shorthand for requiring authentication

    Args:
        user: Current user from get_current_user dependency

    Returns:
        Current user data
    """
    return user
