import time
import uuid
from flask import g, request

def init_request_id(app):
    """Tag every request with an id (client supplied or generated) and log its outcome."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        g.request_started = time.monotonic()

    @app.after_request
    def _add_request_id_header(response):
        if hasattr(g, "request_id"):
            response.headers["X-Request-Id"] = g.request_id
            elapsed_ms = (time.monotonic() - g.request_started) * 1000
            app.logger.info(
                "request_id=%s %s %s -> %s (%.1f ms)",
                g.request_id, request.method, request.path, response.status_code, elapsed_ms,
            )
        return response
