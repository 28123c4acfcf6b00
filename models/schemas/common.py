from marshmallow import Schema, ValidationError

from utils.errors import InvalidInput


def has_text(value) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def not_blank(message: str = "Field may not be blank."):
    """Field validator rejecting empty or whitespace-only strings."""
    def _validate(value):
        if not has_text(value):
            raise ValidationError(message)
    return _validate


def norm_lower(value):
    return value.strip().lower() if isinstance(value, str) else value


def flatten_messages(messages) -> list:
    """Turn marshmallow's {field: [msg, ...]} into a flat list of sub-errors."""
    if isinstance(messages, dict):
        out = []
        for field, msgs in messages.items():
            for msg in flatten_messages(msgs):
                out.append(f"{field}: {msg}")
        return out
    if isinstance(messages, (list, tuple)):
        out = []
        for msg in messages:
            out.extend(flatten_messages(msg))
        return out
    return [str(messages)]


def load_or_raise(schema: Schema, payload, message: str = "Invalid input") -> dict:
    """schema.load() that reports failures as InvalidInput."""
    try:
        return schema.load(payload or {})
    except ValidationError as err:
        errors = flatten_messages(err.messages)
        # a single failing field reads better as the headline itself
        if len(errors) == 1:
            message = errors[0].split(": ", 1)[-1]
        raise InvalidInput(message, errors=errors)
