from marshmallow import Schema, fields

from models.schemas.user import UserCondensedSchema


class VideoOutSchema(Schema):
    id = fields.String()
    video_file = fields.String()
    thumbnail = fields.String(allow_none=True)
    title = fields.String()
    description = fields.String(allow_none=True)
    duration = fields.String()
    views = fields.Integer()
    is_published = fields.Boolean()
    owner = fields.Nested(UserCondensedSchema)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
