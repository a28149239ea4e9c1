import uuid
from typing import Optional, Dict, Any
from flask import current_app, g, request
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity, get_jwt
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from ..extensions import db
from ..models.audit_log import AuditLog

def _optional_actor():
    """
    Returns (user_id, role, resident) for the current request.
    Admins are identified by JWT, residents by their session.
    """
    resident_session = getattr(g, "resident_session", None)
    resident = str(resident_session.resident) if resident_session else None

    try:
        verify_jwt_in_request(optional=True)
        claims = get_jwt() or {}
        return get_jwt_identity(), claims.get("role"), resident
    except (JWTExtendedException, PyJWTError):
        return None, None, resident

def _as_uuid(value):
    return uuid.UUID(str(value)) if value else None

def audit_log(
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    user_id, role, resident = _optional_actor()

    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    ua = request.headers.get("User-Agent")

    log = AuditLog(
        actor_user_id=_as_uuid(user_id),
        actor_role=role or ("RESIDENT" if resident else None),
        actor_resident=resident,
        action=action,
        entity_type=entity_type,
        entity_id=_as_uuid(entity_id),
        ip_address=ip,
        user_agent=ua[:255] if ua else None,
        details=details or None,
    )
    db.session.add(log)


def safe_audit(action: str, entity_type: str, entity_id=None, details: Optional[dict] = None) -> None:
    """
    Best-effort audit in its own commit.
    Never breaks the endpoint if auditing fails.
    """
    try:
        audit_log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Audit logging failed: %s", action)
