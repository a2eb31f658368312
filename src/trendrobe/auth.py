import logging
from functools import lru_cache
from typing import Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .settings import Settings, get_settings
from .store import ANONYMOUS_USER_ID


class UnauthorizedException(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthenticatedException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Requires authentication",
        )


@lru_cache
def get_jwks_client(domain: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(f"https://{domain}/.well-known/jwks.json")


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Verify an Auth0 access token and return its claims.

    Raises:
        UnauthorizedException: If the signing key can't be found or the token is invalid
    """
    assert settings.AUTH0_DOMAIN is not None
    try:
        signing_key = get_jwks_client(settings.AUTH0_DOMAIN).get_signing_key_from_jwt(
            token
        )
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=settings.AUTH0_ALGORITHMS.split(","),
            audience=settings.AUTH0_API_AUDIENCE,
            issuer=settings.AUTH0_ISSUER,
        )
    except jwt.exceptions.PyJWTError as error:
        logging.info(f"Rejected token: {error}")
        raise UnauthorizedException(str(error))


async def verify_token(
    token: HTTPAuthorizationCredentials | None = Depends(HTTPBearer(auto_error=False)),
) -> dict[str, Any]:
    """
    Claims of the caller's bearer token.

    Without an Auth0 domain configured, every caller is the anonymous demo user.
    """
    settings = get_settings()
    if settings.AUTH0_DOMAIN is None:
        return {"sub": ANONYMOUS_USER_ID}

    if token is None:
        raise UnauthenticatedException
    return decode_token(token.credentials, settings)
