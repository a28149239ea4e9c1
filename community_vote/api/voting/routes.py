from flask import Blueprint, abort, g, request
from flasgger import swag_from

from ...utils.audit import safe_audit
from ...schemas.vote import VoteReceiptSchema, VoteStatusSchema, VoteSubmitSchema
from ...services.vote_ledger import VoteLedger
from ...utils.clock import utcnow
from ...utils.rbac import resident_required
from ...utils.validation import validate_or_abort
from ..poll.routes import get_poll_or_404

voting_bp = Blueprint("voting", __name__)
vote_submit_schema = VoteSubmitSchema()
vote_status_schema = VoteStatusSchema()
vote_receipt_schema = VoteReceiptSchema()
ledger = VoteLedger()


@voting_bp.post("/<uuid:poll_id>/vote")
@resident_required
@swag_from({
    "tags": ["Voting"],
    "security": [{"ResidentSession": []}],
    "summary": "Vote agree or disagree (once per household)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {"choice": {"type": "string", "enum": ["agree", "disagree"]}},
            "required": ["choice"],
        },
    }],
    "responses": {
        201: {"description": "Vote recorded"},
        400: {"description": "Validation error"},
        401: {"description": "No resident session"},
        403: {"description": "Poll closed"},
        404: {"description": "Poll not found"},
        409: {"description": "Duplicate vote"},
        503: {"description": "Storage unavailable"},
    },
})
def submit_vote(poll_id):
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(vote_submit_schema, payload)

    resident = g.resident_session.resident
    poll = get_poll_or_404(poll_id)

    if not poll.is_open(utcnow()):
        safe_audit(
            action="VOTE_SUBMIT_DENIED",
            entity_type="VOTE",
            details={"poll_id": str(poll_id), "reason": "poll_closed"},
        )
        abort(403, description={"code": "POLL_CLOSED", "message": "Voting has ended for this poll"})

    choice = payload["choice"]
    if not ledger.submit(poll.id, resident, choice):
        safe_audit(
            action="VOTE_DUPLICATE_ATTEMPT",
            entity_type="VOTE",
            details={"poll_id": str(poll_id)},
        )
        abort(409, description={"code": "DUPLICATE_VOTE", "message": "You have already voted in this poll"})

    safe_audit(
        action="VOTE_SUBMITTED",
        entity_type="VOTE",
        details={"poll_id": str(poll_id), "choice": choice},
    )

    return vote_receipt_schema.dump({
        "message": "Vote recorded",
        "poll_id": poll.id,
        "choice": choice,
        "resident": str(resident),
    }), 201


@voting_bp.get("/<uuid:poll_id>/vote/status")
@resident_required
@swag_from({
    "tags": ["Voting"],
    "security": [{"ResidentSession": []}],
    "summary": "Has the signed-in household voted on this poll?",
    "responses": {200: {"description": "OK"}, 401: {"description": "No resident session"}, 404: {"description": "Poll not found"}},
})
def vote_status(poll_id):
    poll = get_poll_or_404(poll_id)
    vote = ledger.find(poll.id, g.resident_session.resident)

    if vote is None:
        return vote_status_schema.dump({"has_voted": False, "choice": None, "voted_at": None}), 200
    return vote_status_schema.dump({"has_voted": True, "choice": vote.choice, "voted_at": vote.voted_at}), 200
