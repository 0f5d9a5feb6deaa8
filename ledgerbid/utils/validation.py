"""
Input Validation - Parsing of text arguments crossing the ledger boundary.

Contract arguments always arrive as text. Numeric fields (bid prices,
delays, reserve delays) are converted here before any comparison or
storage so the contract never compares strings against numbers.
"""

import math
import re
from typing import Any, Tuple, Union

from ledgerbid.core.errors import InvalidArgumentError

# =============================================================================
# Constants
# =============================================================================

_INTEGER_RE = re.compile(r"^[+-]?\d+$")

Number = Union[int, float]


# =============================================================================
# Validation Functions
# =============================================================================


def validate_key(key: Any, name: str = "key") -> Tuple[bool, str]:
    """
    Validate a world-state key.

    Args:
        key: Key to validate
        name: Field name for error messages

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(key, str):
        return False, f"{name} must be str, got {type(key).__name__}"

    if not key:
        return False, f"{name} must not be empty"

    return True, ""


def validate_conditions(conditions: Any) -> Tuple[bool, str]:
    """Validate the opaque conditions payload. Only the type is checked."""
    if not isinstance(conditions, str):
        return False, f"conditions must be str, got {type(conditions).__name__}"

    return True, ""


def require_key(key: Any, name: str = "key") -> str:
    """Validate a key and raise InvalidArgumentError on failure."""
    is_valid, error = validate_key(key, name)
    if not is_valid:
        raise InvalidArgumentError(error)
    return key


def parse_number(value: Any, name: str) -> Number:
    """
    Parse a string-encoded number.

    Integral text stays ``int``; anything else that float() accepts becomes
    ``float``. Numbers already parsed (int/float) pass through, except bool.

    Args:
        value: Text (or number) to parse
        name: Field name for error messages

    Returns:
        int or float

    Raises:
        InvalidArgumentError: empty, non-numeric, NaN or infinite input
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be a number, got bool")

    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidArgumentError(f"{name} must be a number, got empty string")
        if _INTEGER_RE.match(text):
            try:
                return int(text)
            except ValueError:
                # Above the interpreter's integer string conversion limit
                raise InvalidArgumentError(f"{name} is too large, got {len(text)} digits") from None
        try:
            number = float(text)
        except ValueError:
            raise InvalidArgumentError(f"{name} must be a number, got {value!r}") from None
    else:
        raise InvalidArgumentError(f"{name} must be a number, got {type(value).__name__}")

    if isinstance(number, float):
        if not math.isfinite(number):
            raise InvalidArgumentError(f"{name} must be finite, got {value!r}")
        if number.is_integer():
            return int(number)

    return number
