from flask import abort
from marshmallow import ValidationError


def _abort_validation(errors):
    abort(
        400,
        description={
            "code": "VALIDATION_ERROR",
            "message": "Validation error",
            "errors": errors,
        },
    )


def validate_or_abort(schema, payload):
    errors = schema.validate(payload)
    if errors:
        _abort_validation(errors)
    return payload


def load_or_abort(schema, payload):
    """Like validate_or_abort, but returns the deserialized data (datetimes etc.)."""
    try:
        return schema.load(payload)
    except ValidationError as e:
        _abort_validation(e.messages)
