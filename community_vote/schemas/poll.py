from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from ..utils.clock import to_naive_utc, utcnow

class PollCreateSchema(Schema):
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    content = fields.Str(required=True, validate=validate.Length(min=1))
    # Either a duration from now or an explicit end time
    duration_minutes = fields.Int(required=False, allow_none=True, validate=validate.Range(min=1, max=60 * 24 * 30))
    expires_at = fields.DateTime(required=False, allow_none=True)

    @validates_schema
    def one_expiry_mode(self, data, **kwargs):
        if data.get("duration_minutes") is not None and data.get("expires_at") is not None:
            raise ValidationError("Give either duration_minutes or expires_at, not both")

        expires_at = data.get("expires_at")
        if expires_at is not None and to_naive_utc(expires_at) <= utcnow():
            raise ValidationError("Poll end time must be in the future", field_name="expires_at")

class PollReadSchema(Schema):
    id = fields.UUID()
    title = fields.Str()
    content = fields.Str()
    created_at = fields.DateTime()
    expires_at = fields.DateTime()
    is_active = fields.Bool()
    created_by = fields.Str()
