from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from starlette import status

from .db import get_setting

DEFAULT_SECRET = "secret-dev"

# auto_error=False so a missing header is a 401 here rather than HTTPBearer's 403
http_bearer = HTTPBearer(auto_error=False)


def _secret() -> str:
    return str(get_setting("secret_key", "JOBLY_SECRET_KEY", DEFAULT_SECRET))


def _algorithm() -> str:
    return str(get_setting("jwt_algorithm", "JOBLY_JWT_ALGORITHM", "HS256"))


def create_token(username: str, is_admin: bool = False) -> str:
    """Sign a token carrying the username and admin flag."""
    payload = {"username": username, "isAdmin": bool(is_admin)}
    return jwt.encode(claims=payload, key=_secret(), algorithm=_algorithm())


def decode_token(token: str) -> dict:
    return jwt.decode(token=token, key=_secret(), algorithms=[_algorithm()])


def current_user(http_credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer)) -> dict | None:
    """Payload of a valid bearer token, or None. Never rejects on its own."""
    if http_credentials is None:
        return None
    try:
        return decode_token(http_credentials.credentials)
    except JWTError:
        return None


def require_admin(user: dict | None = Depends(current_user)) -> dict:
    if not user or not user.get("isAdmin"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
