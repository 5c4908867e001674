from flask import request

from errors import ValidationError
from services.updates import integer


def get_json():
    data = request.get_json(silent=True)
    if data is None:
        return request.form
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def text_field(data, name):
    value = data.get(name)
    return value.strip() if isinstance(value, str) else ""


def optional_int(value, name, minimum=None, maximum=None):
    return integer(minimum, maximum)(name, value)


def flag(value) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes")
