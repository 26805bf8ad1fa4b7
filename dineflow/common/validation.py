from typing import Any, Type, TypeVar

import pydantic

from .errors import ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)


def _describe(err: pydantic.ValidationError) -> str:
    first = err.errors()[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "__root__")
    msg = first.get("msg", "invalid value")
    if first.get("type") == "missing":
        return f"{loc} is required" if loc else "Missing required field"
    if first.get("type") == "extra_forbidden":
        return f"Unknown field: {loc}"
    return f"Invalid {loc}: {msg}" if loc else msg


def parse(model: Type[M], data: Any) -> M:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be an object")
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e)) from e
