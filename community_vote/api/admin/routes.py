from datetime import datetime
from flask import Blueprint, abort, current_app, request
from flasgger import swag_from
from sqlalchemy.exc import SQLAlchemyError
from flask_jwt_extended import jwt_required

from ...models.user import User
from ...models.audit_log import AuditLog
from ...schemas.resident import ResidentLinkSchema
from ...services.errors import StorageUnavailable
from ...services.token_service import TOKEN_VALIDITY, login_link, resident_tokens
from ...utils.audit import safe_audit
from ...utils.clock import to_naive_utc, utcnow
from ...utils.rbac import roles_required
from ...utils.validation import load_or_abort
from ..poll.routes import dump_poll, poll_repository
from ..results.routes import result_schema
from ..voting.routes import ledger

admin_bp = Blueprint("admin", __name__)
resident_link_schema = ResidentLinkSchema()


def _parse_iso(s: str) -> datetime:
    """
    Accepts:
      - 'YYYY-MM-DDTHH:MM:SS'
      - 'YYYY-MM-DDTHH:MM:SSZ'
      - 'YYYY-MM-DDTHH:MM:SS+00:00'
    Returns a naive UTC datetime.
    """
    s = (s or "").strip()
    if not s:
        raise ValueError("Empty datetime string")

    # Normalize Zulu
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    return to_naive_utc(datetime.fromisoformat(s))


def _public_origin() -> str:
    return current_app.config.get("PUBLIC_ORIGIN") or request.host_url.rstrip("/")


@admin_bp.get("/directory")
@jwt_required()
@roles_required(User.ROLE_ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Buildings, unit numbers and floors login links can be issued for",
    "responses": {200: {"description": "Community layout"}, 403: {"description": "Forbidden"}},
})
def directory():
    layout = current_app.config["COMMUNITY_LAYOUT"]
    return {"buildings": layout["buildings"], "floors": layout["floors"]}, 200


@admin_bp.post("/resident-links")
@jwt_required()
@roles_required(User.ROLE_ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Issue a two-hour login link for one household (render it as a QR code)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "building": {"type": "string", "example": "A"},
                "unit_number": {"type": "string", "example": "26"},
                "floor": {"type": "integer", "example": 5},
            },
            "required": ["building", "unit_number", "floor"],
        },
    }],
    "responses": {201: {"description": "Link issued"}, 400: {"description": "Unknown household"}, 403: {"description": "Forbidden"}},
})
def issue_resident_link():
    payload = request.get_json(silent=True) or {}
    data = load_or_abort(resident_link_schema, payload)

    issued_at = utcnow().replace(microsecond=0)
    token = resident_tokens().issue(data["building"], data["unit_number"], data["floor"], now=issued_at)
    resident = f'{data["building"]}-{data["unit_number"]}-{data["floor"]}'

    safe_audit(
        action="RESIDENT_LINK_ISSUED",
        entity_type="AUTH",
        details={"resident": resident},
    )

    return {
        "token": token,
        "login_link": login_link(token, _public_origin()),
        "expires_at": (issued_at + TOKEN_VALIDITY).isoformat() + "Z",
        "resident": {
            "building": data["building"],
            "unit_number": data["unit_number"],
            "floor": data["floor"],
            "resident_id": resident,
        },
    }, 201


@admin_bp.get("/polls")
@jwt_required()
@roles_required(User.ROLE_ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Open polls with their current tallies",
    "responses": {200: {"description": "OK"}, 403: {"description": "Forbidden"}, 503: {"description": "Storage unavailable"}},
})
def polls_overview():
    now = utcnow()
    polls = poll_repository().list_active(now=now)
    return {
        "polls": [
            {**dump_poll(p, now), "result": result_schema.dump(ledger.tally(p.id))}
            for p in polls
        ]
    }, 200


@admin_bp.get("/audit-logs")
@jwt_required()
@roles_required(User.ROLE_ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Query audit logs",
    "parameters": [
        {"in": "query", "name": "action", "type": "string", "required": False},
        {"in": "query", "name": "entity_type", "type": "string", "required": False},
        {"in": "query", "name": "resident", "type": "string", "required": False, "description": "e.g. A-26-5"},
        {"in": "query", "name": "from", "type": "string", "required": False, "description": "ISO date-time"},
        {"in": "query", "name": "to", "type": "string", "required": False, "description": "ISO date-time"},
        {"in": "query", "name": "limit", "type": "integer", "required": False, "default": 50},
        {"in": "query", "name": "offset", "type": "integer", "required": False, "default": 0},
    ],
    "responses": {200: {"description": "Logs"}, 400: {"description": "Bad request"}, 403: {"description": "Forbidden"}}
})
def audit_logs():
    action = request.args.get("action")
    entity_type = request.args.get("entity_type")
    resident = request.args.get("resident")
    from_dt = request.args.get("from")
    to_dt = request.args.get("to")

    try:
        limit = min(int(request.args.get("limit", 50)), 200)
        offset = int(request.args.get("offset", 0))
    except ValueError:
        abort(400, description={"code": "VALIDATION_ERROR", "message": "limit and offset must be integers"})

    q = AuditLog.query

    if action:
        q = q.filter(AuditLog.action == action)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if resident:
        q = q.filter(AuditLog.actor_resident == resident)

    try:
        if from_dt:
            q = q.filter(AuditLog.created_at >= _parse_iso(from_dt))
        if to_dt:
            q = q.filter(AuditLog.created_at <= _parse_iso(to_dt))
    except ValueError:
        abort(400, description={"code": "VALIDATION_ERROR", "message": "from and to must be ISO date-times"})

    try:
        total = q.count()
        logs = (
            q.order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
    except SQLAlchemyError:
        current_app.logger.exception("DB error querying audit logs")
        raise StorageUnavailable("audit log query")

    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "logs": [
            {
                "id": str(entry.id),
                "created_at": entry.created_at.isoformat() + "Z",
                "actor_user_id": str(entry.actor_user_id) if entry.actor_user_id else None,
                "actor_role": entry.actor_role,
                "actor_resident": entry.actor_resident,
                "action": entry.action,
                "entity_type": entry.entity_type,
                "entity_id": str(entry.entity_id) if entry.entity_id else None,
                "ip_address": entry.ip_address,
                "user_agent": entry.user_agent,
                "details": entry.details,
            }
            for entry in logs
        ],
    }, 200
