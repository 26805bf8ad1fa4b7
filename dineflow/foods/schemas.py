from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off"}


def _parse_bool(value: Any) -> Any:
    # Multipart forms send booleans as text
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError("expected true or false")
    return value


class _FoodFields(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_blank(cls, data: Any) -> Any:
        # Blank form fields count as "not given"
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None and not (isinstance(v, str) and not v.strip())}
        return data

    @field_validator("available", mode="before", check_fields=False)
    @classmethod
    def _available(cls, value: Any) -> Any:
        return _parse_bool(value)


class FoodCreate(_FoodFields):
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = None
    type: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False)
    available: bool = True


class FoodUpdate(_FoodFields):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = None
    type: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    available: Optional[bool] = None
