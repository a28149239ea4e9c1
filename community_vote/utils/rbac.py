from functools import wraps
from flask import abort, g
from flask_jwt_extended import get_jwt

from .session import resident_session_store

def roles_required(*allowed_roles: str):
    """
    Require JWT and restrict endpoint access to specific roles.
    Use with @jwt_required() above it.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            claims = get_jwt()
            role = claims.get("role")
            if role not in allowed_roles:
                abort(403, description="Insufficient permissions")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def resident_required(fn):
    """
    Require a live resident session (set by the login link).
    The session is exposed as ``g.resident_session``.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        session = resident_session_store().load()
        if session is None:
            abort(
                401,
                description={
                    "code": "SESSION_REQUIRED",
                    "message": "Please sign in again with your login link",
                },
            )
        g.resident_session = session
        return fn(*args, **kwargs)
    return wrapper
