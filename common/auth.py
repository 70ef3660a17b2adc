from typing import Any, Dict

import jwt
from fastapi import Header, HTTPException, status

from .secrets import get_secret


def require_token(authorization: str | None = Header(None)) -> Dict[str, Any]:
    """Validate a Bearer token against ``API_TOKENS`` or an HS256 JWT.

    Returns the caller identity as ``{"sub": ...}`` (or the JWT claims).
    """

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    # JWT: three dot-separated segments
    if token.count(".") == 2:
        secret = get_secret("JWT_SECRET")
        if not secret:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden"
            )
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.PyJWTError as exc:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden"
            ) from exc

    tokens: Dict[str, str] = get_secret("API_TOKENS", {}) or {}
    for user, expected in tokens.items():
        if token == expected:
            return {"sub": user}
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
