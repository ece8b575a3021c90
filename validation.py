from __future__ import annotations

from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import ValidationError as SchemaError

from errors import FieldError, ValidationError
from schemas import FormModel


FormT = TypeVar("FormT", bound=FormModel)

DEFAULT_REJECTION = "Validation failed. Please check your inputs."


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def field_errors(schema: Type[FormModel], exc: SchemaError) -> List[FieldError]:
    """Flatten a pydantic error into one ``{field, message}`` entry per field."""
    errors: List[FieldError] = []
    seen = set()
    for err in exc.errors(include_url=False):
        loc = err.get("loc") or ("__root__",)
        field = str(loc[0])
        if field in seen:
            continue
        seen.add(field)
        required = err.get("type") == "missing" or _is_blank(err.get("input"))
        message = schema.message_for(field, required) or err.get("msg", "Invalid value.")
        errors.append({"field": field, "message": message})
    return errors


def validate(schema: Type[FormT], fields: Mapping[str, Any], rejection: str = DEFAULT_REJECTION) -> FormT:
    """Validate raw form fields against ``schema``.

    Every failing field is reported, not only the first. Returns the
    normalized model or raises ``ValidationError`` carrying the field list.
    """
    try:
        return schema.model_validate(dict(fields))
    except SchemaError as exc:
        raise ValidationError(rejection, field_errors(schema, exc)) from None


def form_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep the plain values of a parsed body, dropping uploaded files."""
    return {key: value for key, value in raw.items() if isinstance(value, (str, int, float, bool)) or value is None}
