def swagger_template(app=None):
    title = "Community Vote API"
    version = "1.0.0"

    if app:
        title = app.config.get("SWAGGER_TITLE", title)
        version = app.config.get("SWAGGER_VERSION", version)

    return {
        "swagger": "2.0",
        "info": {
            "title": title,
            "version": version,
            "description": "Resident login links, agree/disagree polls and live tallies.",
        },
        "securityDefinitions": {
            "BearerAuth": {
                "type": "apiKey",
                "name": "Authorization",
                "in": "header",
                "description": "Admin JWT Authorization header: Bearer <token>"
            },
            "ResidentSession": {
                "type": "apiKey",
                "name": "session",
                "in": "cookie",
                "description": "Signed session cookie set by /api/resident/login"
            }
        },
        "definitions": {
            "ErrorResponse": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": False},
                    "error": {
                        "type": "object",
                        "properties": {
                            "code": {"type": "string", "example": "DUPLICATE_VOTE"},
                            "message": {"type": "string", "example": "You have already voted in this poll"},
                            "details": {"type": "object"}
                        }
                    },
                    "request_id": {"type": "string"}
                }
            },
            "PollResult": {
                "type": "object",
                "properties": {
                    "poll_id": {"type": "string"},
                    "agree_count": {"type": "integer"},
                    "disagree_count": {"type": "integer"},
                    "total_votes": {"type": "integer"},
                    "agree_percent": {"type": "integer"},
                    "disagree_percent": {"type": "integer"}
                }
            }
        }
    }
