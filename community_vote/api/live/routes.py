import json
import queue
import uuid

from flask import Blueprint, Response, abort, current_app, request, stream_with_context
from flasgger import swag_from

from ...extensions import change_feed

live_bp = Blueprint("live", __name__)


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@live_bp.get("/stream")
@swag_from({
    "tags": ["Live"],
    "summary": "Server-Sent Events telling clients to refetch polls or tallies",
    "description": (
        "Emits `polls` when a poll is published and `votes` when a vote is recorded. "
        "Events only say what changed; clients refetch. Repeated events are harmless."
    ),
    "parameters": [
        {"in": "query", "name": "poll_id", "type": "string", "required": False,
         "description": "Only vote events for this poll"},
    ],
    "produces": ["text/event-stream"],
    "responses": {200: {"description": "Event stream"}, 400: {"description": "Invalid poll id"}},
})
def stream():
    poll_id = request.args.get("poll_id") or None
    if poll_id:
        try:
            poll_id = str(uuid.UUID(poll_id))
        except ValueError:
            abort(400, description={"code": "VALIDATION_ERROR", "message": "poll_id must be a UUID"})

    heartbeat = current_app.config["LIVE_STREAM_HEARTBEAT_SECONDS"]
    inbox = queue.Queue(maxsize=current_app.config["LIVE_STREAM_QUEUE_SIZE"])

    def offer(change):
        # A full inbox already holds a pending refresh
        try:
            inbox.put_nowait(change)
        except queue.Full:
            pass

    def generate():
        # Subscribe only once the body is consumed; HEAD never starts it
        subscriptions = []
        try:
            subscriptions.append(change_feed.subscribe("votes", offer, poll_id=poll_id))
            if poll_id is None:
                subscriptions.append(change_feed.subscribe("polls", offer))

            yield _sse("ready", {"poll_id": poll_id})
            while True:
                try:
                    change = inbox.get(timeout=heartbeat)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                yield _sse(change.table, {"poll_id": change.poll_id})
        finally:
            for sub in subscriptions:
                sub.unsubscribe()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
