"""
Bearer-token verification.

Tokens are HS256 JWTs carrying {userId, email, role}; issuing them belongs to
the identity service. `create_access_token` exists for operators and tests.
"""
import logging
from datetime import timedelta
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

import config
from database import utcnow
from errors import ForbiddenError, UnauthorizedError
from schemas import TokenPayload

logger = logging.getLogger(__name__)

if config.JWT_SECRET == "default_secret_FOR_DEVELOPMENT_ONLY":
    logger.warning("JWT_SECRET is not set; using the development default")

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, email: str, role: str = "customer", expires_minutes: Optional[int] = None) -> str:
    minutes = config.JWT_EXPIRES_MINUTES if expires_minutes is None else expires_minutes
    claims = {
        "userId": user_id,
        "email": email,
        "role": role,
        "exp": utcnow() + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    try:
        claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")
    try:
        return TokenPayload.model_validate(claims)
    except PydanticValidationError:
        raise UnauthorizedError("Invalid token")


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> TokenPayload:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("No token provided")
    return decode_token(credentials.credentials)


def require_admin(user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
    if user.role != "admin":
        raise ForbiddenError("Admin access required")
    return user
