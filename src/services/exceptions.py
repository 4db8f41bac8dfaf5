"""Client-side exceptions for service layer operations."""
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class ValidationError(Exception):
    """
    Raised when form input fails a client-side check.

    Raised before any request is sent. Carries the first offending field so
    the caller can show the message inline next to it.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, e: PydanticValidationError) -> "ValidationError":
        """Build from a pydantic error, keeping the first error's field and message."""
        errors = e.errors()
        if not errors:
            return cls("Invalid input")
        first = errors[0]
        loc = first.get("loc") or ()
        field = str(loc[-1]) if loc else None
        message = first.get("msg", "Invalid input")
        # pydantic prefixes messages raised from validators with "Value error, "
        message = message.removeprefix("Value error, ")
        return cls(message, field=field)


def validate_form(model: type[ModelT], **data: Any) -> ModelT:
    """
    Validate form input against a schema.

    Raises:
        ValidationError: If the input doesn't satisfy the schema.
    """
    try:
        return model(**data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e
