from flask import Blueprint
from flasgger import swag_from

from ...schemas.results import PollResultSchema
from ...utils.rbac import resident_required
from ..poll.routes import get_poll_or_404
from ..voting.routes import ledger

results_bp = Blueprint("results", __name__)
result_schema = PollResultSchema()


@results_bp.get("/<uuid:poll_id>/results")
@resident_required
@swag_from({
    "tags": ["Results"],
    "security": [{"ResidentSession": []}],
    "summary": "Live tally for a poll",
    "description": "Recounted from the votes table on every request.",
    "responses": {
        200: {"description": "Tally", "schema": {"$ref": "#/definitions/PollResult"}},
        401: {"description": "No resident session"},
        404: {"description": "Poll not found"},
        503: {"description": "Storage unavailable"},
    },
})
def poll_results(poll_id):
    poll = get_poll_or_404(poll_id)
    return {"result": result_schema.dump(ledger.tally(poll.id))}, 200
