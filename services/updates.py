"""
Partial updates: only fields present in the payload are touched.

Each updatable resource declares a fixed mapping of field name to coercer.
A coercer receives the field name and raw JSON value and returns the value to
assign, or raises ValidationError.
"""
from datetime import date

from errors import ValidationError


def text(max_length=None, required=False):
    def coerce(name, value):
        if value is None:
            if required:
                raise ValidationError(f"{name} cannot be empty")
            return None
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be a string")
        value = value.strip()
        if not value:
            if required:
                raise ValidationError(f"{name} cannot be empty")
            return None
        if max_length and len(value) > max_length:
            raise ValidationError(f"{name} must be at most {max_length} characters")
        return value
    return coerce


def iso_date(name, value):
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format")


def choice(*options):
    def coerce(name, value):
        if value not in options:
            raise ValidationError(f"{name} must be one of: {', '.join(options)}")
        return value
    return coerce


def boolean(name, value):
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false")
    return value


def whole_number(value):
    """Return ``value`` as an int, or None when it is not a whole number.

    JSON numbers arrive as floats; 3.0 is accepted, 2.5 and inf are not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def integer(minimum=None, maximum=None, nullable=True):
    def coerce(name, value):
        if value in (None, ""):
            if nullable:
                return None
            raise ValidationError(f"{name} is required")
        number = whole_number(value)
        if number is None:
            raise ValidationError(f"{name} must be an integer")
        if minimum is not None and number < minimum:
            raise ValidationError(f"{name} must be at least {minimum}")
        if maximum is not None and number > maximum:
            raise ValidationError(f"{name} must be at most {maximum}")
        return number
    return coerce


def apply_updates(obj, data, fields):
    """Assign recognised fields from ``data`` onto ``obj``; return the names set."""
    changed = []
    for name, coerce in fields.items():
        if name not in data:
            continue
        setattr(obj, name, coerce(name, data[name]))
        changed.append(name)
    return changed


PROFILE_FIELDS = {
    "full_name": text(100),
    "school": text(100),
    "state": text(100),
    "country": text(100),
    "bio": text(2000),
    "phone": text(30),
    "date_of_birth": iso_date,
    "website": text(255),
    "avatar_url": text(255),
}
