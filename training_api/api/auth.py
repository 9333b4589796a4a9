"""
JWT token service and authentication middleware for the Flask API.

Tokens are self-contained: verifying one needs only the secret key, there is
no server-side session store.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional

import jwt
from flask import request

from training_api.config import ROLES, SECRET_KEY, TOKEN_EXPIRY_HOURS
from training_api.errors import InvalidToken, Unauthenticated
from training_api.models import Identity

ALGORITHM = "HS256"


class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


def generate_token(user_id: str, email: str, role: str,
                   issued_at: Optional[datetime] = None,
                   secret: str = SECRET_KEY,
                   expiry_hours: int = TOKEN_EXPIRY_HOURS) -> str:
    """Generate a signed token for an authenticated user."""
    issued_at = issued_at or datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=expiry_hours),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str = SECRET_KEY) -> Identity:
    """Verify a token and return the caller identity it carries.

    Raises TokenExpired once the expiry time is reached and TokenInvalid for
    a bad signature or a malformed payload.
    """
    try:
        payload = jwt.decode(
            token, secret, algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenInvalid(str(e)) from e

    user_id = payload.get("userId")
    role = payload.get("role")
    if not isinstance(user_id, str) or not user_id or role not in ROLES:
        raise TokenInvalid("Token payload is incomplete")

    return Identity(id=user_id, role=role, email=payload.get("email"))


def bearer_token() -> Optional[str]:
    """Return the token from `Authorization: Bearer <token>`, if any."""
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split(" ")
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
        return parts[1]
    return None


def token_required(f):
    """Decorator that protects endpoints with token authentication."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise Unauthenticated("Access token required")

        try:
            identity = verify_token(token)
        except TokenError as e:
            print(f"[auth] Rejected token: {e}")
            raise InvalidToken("Invalid or expired token") from e

        # Attach the caller to the request context
        request.identity = identity
        return f(*args, **kwargs)

    return decorated


def current_identity() -> Identity:
    return request.identity
