from typing import Any

from errors import ValidationError


class FieldValidator:
    """Shape checks for request fields; failures raise ValidationError."""

    @staticmethod
    def is_string(value: Any) -> bool:
        return isinstance(value, str)

    @staticmethod
    def is_integer(value: Any) -> bool:
        # bool is an int subclass but never a valid count
        return isinstance(value, int) and not isinstance(value, bool)

    @staticmethod
    def require_strings(message: str, **fields: Any) -> None:
        for value in fields.values():
            if not FieldValidator.is_string(value):
                raise ValidationError(message)

    @staticmethod
    def require_copies(message: str, copies: Any) -> None:
        if not FieldValidator.is_integer(copies) or copies < 0:
            raise ValidationError(message)


BOOK_FORMAT = "Invalid book format. Must include: title (string), author (string), isbn (string), copies (integer)"
CUSTOMER_FORMAT = "Invalid customer format. Must include: name (string), email (string), customer_id (string)"
CHECKOUT_FORMAT = "Invalid checkout format. Must include: isbn (string), customer_id (string), due_date (string)"
RETURN_FORMAT = "Invalid return format. Must include: isbn (string), customer_id (string)"
