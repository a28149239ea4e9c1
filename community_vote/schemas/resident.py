from flask import current_app
from marshmallow import Schema, fields, validate, validates_schema, ValidationError

class ResidentLinkSchema(Schema):
    building = fields.Str(required=True, validate=validate.Length(min=1, max=16))
    unit_number = fields.Str(required=True, validate=validate.Length(min=1, max=16))
    floor = fields.Int(required=True, strict=True)

    @validates_schema
    def in_community_layout(self, data, **kwargs):
        layout = current_app.config["COMMUNITY_LAYOUT"]
        units = layout["buildings"].get(data["building"])
        if units is None:
            raise ValidationError("Unknown building", field_name="building")
        if data["unit_number"] not in units:
            raise ValidationError("Unknown unit number for this building", field_name="unit_number")
        if data["floor"] not in layout["floors"]:
            raise ValidationError("Unknown floor", field_name="floor")

class ResidentSessionSchema(Schema):
    building = fields.Str(attribute="building_code")
    unit_number = fields.Str()
    floor = fields.Int(attribute="floor_number")
    resident_id = fields.Function(lambda s: str(s.resident))
    token_expires_at = fields.DateTime()
