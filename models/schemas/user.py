from marshmallow import Schema, fields, pre_load, validates, ValidationError, EXCLUDE

from models.schemas.common import not_blank, norm_lower

MIN_PASSWORD_LENGTH = 8


def _validate_password(value):
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")


class UserRegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(required=True, validate=not_blank("Username is required."))
    email = fields.Email(required=True)
    full_name = fields.String(required=True, validate=not_blank("Full name is required."))
    password = fields.String(required=True, load_only=True)
    avatar = fields.String(
        required=True,
        validate=not_blank("Avatar is required."),
        error_messages={"required": "Avatar is required."},
    )
    cover_image = fields.String(load_default="", allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("username", "email"):
                if key in data:
                    data[key] = norm_lower(data[key])
            if isinstance(data.get("full_name"), str):
                data["full_name"] = data["full_name"].strip()
        return data

    @validates("username")
    def validate_username(self, value, **kwargs):
        if any(ch.isspace() for ch in value):
            raise ValidationError("Username must not contain whitespace.")

    @validates("password")
    def validate_password(self, value, **kwargs):
        _validate_password(value)


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    password = fields.String(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("username", "email"):
                if key in data:
                    data[key] = norm_lower(data[key]) or None
        return data


class UserUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.String(
        required=True,
        validate=not_blank("All fields are required."),
        error_messages={"required": "All fields are required."},
    )
    email = fields.Email(required=True, error_messages={"required": "All fields are required."})

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = norm_lower(data["email"])
            if isinstance(data.get("full_name"), str):
                data["full_name"] = data["full_name"].strip()
        return data


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    old_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        _validate_password(value)


class UserOutSchema(Schema):
    """Public-safe projection: never includes password_hash or refresh_token."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String()
    avatar = fields.String()
    cover_image = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class UserCondensedSchema(Schema):
    id = fields.String()
    username = fields.String()
    full_name = fields.String()
    avatar = fields.String()


class ChannelProfileSchema(Schema):
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String()
    avatar = fields.String()
    cover_image = fields.String(allow_none=True)
    subscribers_count = fields.Integer()
    channels_subscribed_to_count = fields.Integer()
    is_subscribed = fields.Boolean()
