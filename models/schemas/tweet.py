from marshmallow import Schema, fields, pre_load, EXCLUDE
from marshmallow.validate import Length

from models.schemas.user import UserCondensedSchema
from models.tweet import MAX_TWEET_LENGTH


class TweetContentSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    content = fields.String(
        required=True,
        validate=Length(min=1, max=MAX_TWEET_LENGTH, error=f"Tweet content must be 1 to {MAX_TWEET_LENGTH} characters."),
        error_messages={"required": "Tweet content is required.", "null": "Tweet content is required."},
    )

    @pre_load
    def strip(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("content"), str):
            data = dict(data)
            data["content"] = data["content"].strip()
        return data


class TweetOutSchema(Schema):
    id = fields.String()
    content = fields.String()
    owner = fields.Nested(UserCondensedSchema)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
