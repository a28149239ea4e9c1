from marshmallow import Schema, fields

class PollResultSchema(Schema):
    poll_id = fields.Str(required=True)
    agree_count = fields.Int(required=True)
    disagree_count = fields.Int(required=True)
    total_votes = fields.Int(required=True)
    agree_percent = fields.Int(required=True)
    disagree_percent = fields.Int(required=True)
