from flask import current_app, session

from ..services.session_store import SessionStore


def resident_session_store() -> SessionStore:
    """Session store over the signed cookie of the current request."""
    return SessionStore(session, key=current_app.config["RESIDENT_SESSION_KEY"])
