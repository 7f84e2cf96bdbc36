"""
Bearer-token gate for the API.

The catalog, auth and health endpoints are open; everything else under
/api/ needs a valid token whose `user_id` resolves to an active account.
That user's id is the owner id the prescription core works with. Failures
raise Unauthenticated / Forbidden and are rendered by the shared error
handler.
"""

from functools import wraps
from typing import Optional

from flask import request, g
import jwt as pyjwt

from rxgate.config import Config
from rxgate.database import db
from rxgate.errors import Forbidden, Unauthenticated
from rxgate.models.models import User

OPEN_PREFIXES = ("/api/auth", "/api/health", "/api/products")


def _requires_token(path: str) -> bool:
    return path.startswith("/api/") and not path.startswith(OPEN_PREFIXES)


def _bearer_token() -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token:
        raise Unauthenticated("Missing or invalid Authorization header.")
    return token


def _resolve_user(token: str) -> User:
    try:
        claims = pyjwt.decode(token, Config.JWT_SECRET, algorithms=[Config.JWT_ALGORITHM])
    except pyjwt.ExpiredSignatureError:
        raise Unauthenticated("Session expired, please log in again.")
    except pyjwt.InvalidTokenError:
        raise Unauthenticated("Invalid token.")

    user_id = claims.get("user_id")
    user = db.session.get(User, user_id) if user_id is not None else None
    if user is None or not user.is_active:
        raise Forbidden("Account not found or deactivated.")
    return user


def jwt_required_middleware():
    """before_request hook; sets g.current_user on protected paths."""
    if request.method == "OPTIONS" or not _requires_token(request.path):
        return None
    g.current_user = _resolve_user(_bearer_token())
    return None


def get_current_user() -> Optional[User]:
    return g.get("current_user")


def current_owner_id() -> int:
    user = get_current_user()
    if user is None:
        raise Unauthenticated()
    return user.id


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = get_current_user()
        if user is None:
            raise Unauthenticated()
        if not user.is_admin:
            raise Forbidden()
        return view(*args, **kwargs)
    return wrapper
