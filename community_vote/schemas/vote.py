from marshmallow import Schema, fields, validate

from ..domain import VALID_CHOICES

class VoteSubmitSchema(Schema):
    choice = fields.Str(required=True, validate=validate.OneOf(VALID_CHOICES))

class VoteStatusSchema(Schema):
    has_voted = fields.Bool(required=True)
    choice = fields.Str(allow_none=True)
    voted_at = fields.DateTime(allow_none=True)

class VoteReceiptSchema(Schema):
    message = fields.Str(required=True)
    poll_id = fields.UUID()
    choice = fields.Str()
    resident = fields.Str()
