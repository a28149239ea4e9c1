from flask import Blueprint, abort, current_app, request
from flasgger import swag_from
from flask_jwt_extended import jwt_required

from ...utils.audit import safe_audit
from ...models.user import User
from ...schemas.poll import PollCreateSchema, PollReadSchema
from ...services.poll_repository import PollRepository
from ...utils.clock import to_naive_utc, utcnow
from ...utils.rbac import roles_required, resident_required
from ...utils.validation import load_or_abort

polls_bp = Blueprint("polls", __name__)

poll_create_schema = PollCreateSchema()
poll_read_schema = PollReadSchema()
poll_read_many_schema = PollReadSchema(many=True)


def poll_repository() -> PollRepository:
    return PollRepository(current_app.config["DEFAULT_POLL_DURATION_MINUTES"])


def get_poll_or_404(poll_id):
    poll = poll_repository().get(poll_id)
    if poll is None:
        abort(404, description={"code": "POLL_NOT_FOUND", "message": "Poll not found"})
    return poll


def dump_poll(poll, now=None):
    data = poll_read_schema.dump(poll)
    data["is_open"] = poll.is_open(now or utcnow())
    return data


@polls_bp.post("/")
@jwt_required()
@roles_required(User.ROLE_ADMIN)
@swag_from({
    "tags": ["Polls"],
    "security": [{"BearerAuth": []}],
    "summary": "Push a new agree/disagree poll (admin)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "example": "Repaint the lobby"},
                "content": {"type": "string", "example": "Budget approved by the committee"},
                "duration_minutes": {"type": "integer", "example": 60},
                "expires_at": {"type": "string", "format": "date-time"},
            },
            "required": ["title", "content"],
        },
    }],
    "responses": {
        201: {"description": "Created"},
        400: {"description": "Validation error"},
        403: {"description": "Forbidden"},
        503: {"description": "Storage unavailable"},
    },
})
def create_poll():
    payload = request.get_json(silent=True) or {}
    data = load_or_abort(poll_create_schema, payload)

    expires_at = data.get("expires_at")
    poll = poll_repository().create(
        title=data["title"].strip(),
        content=data["content"].strip(),
        duration_minutes=data.get("duration_minutes"),
        expires_at=to_naive_utc(expires_at) if expires_at else None,
    )

    safe_audit(
        action="POLL_CREATED",
        entity_type="POLL",
        entity_id=str(poll.id),
        details={"title": poll.title, "expires_at": poll.expires_at.isoformat()},
    )
    return {"poll": dump_poll(poll)}, 201


@polls_bp.get("/active")
@resident_required
@swag_from({
    "tags": ["Polls"],
    "security": [{"ResidentSession": []}],
    "summary": "List polls open for voting, newest first",
    "responses": {200: {"description": "OK"}, 401: {"description": "No resident session"}, 503: {"description": "Storage unavailable"}},
})
def list_active_polls():
    now = utcnow()
    polls = poll_repository().list_active(now=now)
    return {"polls": [dump_poll(p, now) for p in polls]}, 200


@polls_bp.get("/<uuid:poll_id>")
@resident_required
@swag_from({
    "tags": ["Polls"],
    "security": [{"ResidentSession": []}],
    "summary": "Get poll details",
    "responses": {200: {"description": "OK"}, 401: {"description": "No resident session"}, 404: {"description": "Poll not found"}},
})
def get_poll(poll_id):
    return {"poll": dump_poll(get_poll_or_404(poll_id))}, 200
