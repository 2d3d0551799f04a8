from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from services.errors import InvalidSignature, PermissionDenied


def get_services():
    return current_app.extensions["auth"]


def bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def client_device() -> str:
    return request.headers.get("User-Agent") or "unknown"


def client_ip() -> str | None:
    return request.remote_addr


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise InvalidSignature("Access token is required")
            # verifies signature, expiry and the revocation ledger, then loads the account
            user = get_services().session.current_user(token)
            g.current_user = user
            g.current_user_role = user.role
            g.access_token = token
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the user's role is one of required_roles; 403 otherwise.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if getattr(g, "current_user_role", None) not in req:
                raise PermissionDenied()
            return fn(*args, **kwargs)

        return wrapper

    return decorator
