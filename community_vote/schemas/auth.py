from marshmallow import Schema, fields, validate

class LoginSchema(Schema):
    """Schema for admin login request"""
    email = fields.Email(required=True)
    password = fields.Str(
        required=True,
        validate=validate.Length(min=8, max=128),
    )

class AdminSchema(Schema):
    id = fields.UUID()
    email = fields.Email()
    role = fields.Str()
    is_active = fields.Bool()
    created_at = fields.DateTime()
