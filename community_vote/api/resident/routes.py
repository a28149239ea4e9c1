from flask import Blueprint, abort, current_app, g, request
from flasgger import swag_from

from ...domain import ResidentSession
from ...schemas.resident import ResidentSessionSchema
from ...services.token_service import resident_tokens
from ...utils.audit import safe_audit
from ...utils.clock import utcnow
from ...utils.rbac import resident_required
from ...utils.session import resident_session_store

resident_bp = Blueprint("resident", __name__)
session_schema = ResidentSessionSchema()

INVALID_LINK_MESSAGE = "Login link is invalid or has expired. Please scan a new QR code."


def _dump_session(session: ResidentSession) -> dict:
    data = session_schema.dump(session)
    data["seconds_remaining"] = max(0, int((session.token_expires_at - utcnow()).total_seconds()))
    return data


@resident_bp.get("/login")
@swag_from({
    "tags": ["Resident"],
    "summary": "Exchange a login-link token for a resident session",
    "parameters": [{"in": "query", "name": "token", "required": True, "type": "string"}],
    "responses": {
        200: {"description": "Signed in; session cookie set"},
        400: {"description": "Missing token"},
        401: {"description": "Token invalid or expired"},
    },
})
def login():
    token = request.args.get("token", "").strip()
    if not token:
        abort(400, description={"code": "INVALID_LOGIN_LINK", "message": "Login link is missing its token"})

    claim = resident_tokens().verify(token)
    if claim is None:
        safe_audit(action="RESIDENT_LOGIN_FAILED", entity_type="AUTH")
        abort(401, description={"code": "INVALID_LOGIN_LINK", "message": INVALID_LINK_MESSAGE})

    session = ResidentSession.from_claim(claim)
    resident_session_store().save(session)
    g.resident_session = session

    current_app.logger.info("Resident %s signed in", session.resident)
    safe_audit(action="RESIDENT_LOGIN_SUCCESS", entity_type="AUTH")

    return {"message": "Login successful", "resident": _dump_session(session)}, 200


@resident_bp.get("/me")
@resident_required
@swag_from({
    "tags": ["Resident"],
    "security": [{"ResidentSession": []}],
    "summary": "Current resident session and time left",
    "responses": {200: {"description": "Session"}, 401: {"description": "No session or session expired"}},
})
def me():
    return {"resident": _dump_session(g.resident_session)}, 200


@resident_bp.post("/logout")
@swag_from({
    "tags": ["Resident"],
    "summary": "End the resident session",
    "responses": {200: {"description": "Signed out"}},
})
def logout():
    resident_session_store().clear()
    return {"message": "Logged out successfully"}, 200
