"""Field validation rules applied before entities are persisted.

Each entity has a table mapping field name to a list of validators. A
validator takes the field value and returns an error message, or ``None``
when the value is acceptable. ``validate`` runs every validator of every
field and raises ``InvalidInputError`` carrying the first message per field.
"""
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import EmailStr, HttpUrl, TypeAdapter, ValidationError

from app.core.errors import InvalidInputError
from app.db.models import ISSUE_PRIORITIES, ISSUE_STATUSES, ISSUE_TYPES, PROJECT_CATEGORIES


Validator = Callable[[Any], str | None]

EMAIL_ADAPTER = TypeAdapter(EmailStr)
URL_ADAPTER = TypeAdapter(HttpUrl)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_required() -> Validator:
    def check(value: Any) -> str | None:
        return "This field is required" if _is_blank(value) else None

    return check


def max_length(limit: int) -> Validator:
    def check(value: Any) -> str | None:
        if value is not None and len(value) > limit:
            return f"Must be at most {limit} characters"
        return None

    return check


def one_of(options: Iterable[Any]) -> Validator:
    allowed = tuple(options)

    def check(value: Any) -> str | None:
        if value is not None and value not in allowed:
            return f"Must be one of: {', '.join(str(item) for item in allowed)}"
        return None

    return check


def is_email() -> Validator:
    def check(value: Any) -> str | None:
        if _is_blank(value):
            return None
        try:
            EMAIL_ADAPTER.validate_python(value)
        except ValidationError:
            return "Must be a valid email"
        return None

    return check


def is_url() -> Validator:
    def check(value: Any) -> str | None:
        if _is_blank(value):
            return None
        try:
            URL_ADAPTER.validate_python(value)
        except ValidationError:
            return "Must be a valid URL"
        return None

    return check


def non_negative() -> Validator:
    def check(value: Any) -> str | None:
        if value is not None and value < 0:
            return "Must not be negative"
        return None

    return check


PROJECT_RULES: dict[str, list[Validator]] = {
    "name": [is_required(), max_length(100)],
    "url": [is_url(), max_length(2000)],
    "category": [is_required(), one_of(PROJECT_CATEGORIES)],
}

USER_RULES: dict[str, list[Validator]] = {
    "name": [is_required(), max_length(100)],
    "email": [is_required(), is_email(), max_length(200)],
    "avatar_url": [max_length(2000)],
}

ISSUE_RULES: dict[str, list[Validator]] = {
    "title": [is_required(), max_length(200)],
    "type": [is_required(), one_of(ISSUE_TYPES)],
    "status": [is_required(), one_of(ISSUE_STATUSES)],
    "priority": [is_required(), one_of(ISSUE_PRIORITIES)],
    "reporter_id": [is_required()],
    "estimate": [non_negative()],
    "time_spent": [non_negative()],
    "time_remaining": [non_negative()],
}

COMMENT_RULES: dict[str, list[Validator]] = {
    "body": [is_required(), max_length(50000)],
}


def generate_errors(values: Mapping[str, Any], rules: Mapping[str, list[Validator]]) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field, validators in rules.items():
        for validator in validators:
            message = validator(values.get(field))
            if message:
                errors[field] = message
                break
    return errors


def validate(values: Mapping[str, Any], rules: Mapping[str, list[Validator]]) -> None:
    errors = generate_errors(values, rules)
    if errors:
        raise InvalidInputError(errors)


def validate_entity(entity: Any, rules: Mapping[str, list[Validator]]) -> None:
    validate({field: getattr(entity, field) for field in rules}, rules)
