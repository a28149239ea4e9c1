from flask import current_app, jsonify, g
from werkzeug.exceptions import HTTPException

from .services.errors import StorageUnavailable

def _payload(code: str, message: str, details=None, status=400, headers=None):
    response = jsonify({
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or None,
        },
        "request_id": getattr(g, "request_id", None),
    })
    if headers:
        response.headers.update(headers)
    return response, status

def register_error_handlers(app):
    # Generic HTTP errors (404, 403, 401, etc.)
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description

        # If we pass structured error info via abort(description=dict)
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400
        )

    @app.errorhandler(404)
    def handle_404(e):
        if isinstance(getattr(e, "description", None), dict):
            return handle_http_exception(e)
        return _payload("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(e: StorageUnavailable):
        retry_after = current_app.config.get("STORAGE_RETRY_AFTER_SECONDS", 5)
        return _payload(
            "STORAGE_UNAVAILABLE",
            "The service is temporarily unavailable. Please try again shortly.",
            details={"operation": e.operation, "retry_after": retry_after},
            status=503,
            headers={"Retry-After": str(retry_after)},
        )

    @app.errorhandler(500)
    def handle_500(_):
        # Don't leak internals
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)
