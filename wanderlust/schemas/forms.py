"""
Wanderlust Backend - Form Schemas
==================================

What:  Pydantic models declaring the shape of every submitted form, plus the
       helper that turns pydantic's errors into a single ValidationError.
Who:   wanderlust.validation (listing/review guards) and the account routes.

Field naming follows the HTML forms: listing fields arrive as
`listing[title]`, `listing[price]`, ... and review fields as
`review[comment]`, `review[rating]`. The validation layer strips the prefix
before calling `validate_payload`, and error messages put it back
(`listing.price: ...`) so the user can tell which field failed.
"""

from typing import Any, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from wanderlust.exceptions import ValidationError

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

FormModel = TypeVar("FormModel", bound=BaseModel)


class _Form(BaseModel):
    # Unknown keys (an injected `owner`, the `image` file part) are dropped
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class ListingForm(_Form):
    """Fields accepted by POST /listings and PUT /listings/{id}."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    price: float = Field(ge=0, allow_inf_nan=False)
    location: str = Field(min_length=1, max_length=200)
    country: str = Field(min_length=1, max_length=120)


class ReviewForm(_Form):
    """Fields accepted by POST /listings/{id}/reviews."""

    comment: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)


class SignupForm(_Form):
    username: str = Field(min_length=1, max_length=64)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class LoginForm(_Form):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


def format_errors(errors: Iterable[Mapping[str, Any]], prefix: Optional[str] = None) -> List[str]:
    """
    Flatten pydantic errors into `field: reason` strings.

    Example:
        price=-1 under prefix "listing" →
        ["listing.price: Input should be greater than or equal to 0"]
    """
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error["loc"])
        if prefix:
            location = f"{prefix}.{location}" if location else prefix
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def validate_payload(
    model: Type[FormModel],
    data: Mapping[str, Any],
    prefix: Optional[str] = None,
) -> FormModel:
    """
    Validate `data` against `model`.

    Returns:
        The parsed model instance (values coerced, whitespace stripped).
    Raises:
        ValidationError (400) carrying every violation, not only the first.
    """
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(
            format_errors(exc.errors(), prefix),
            context={"schema": model.__name__},
        ) from exc
