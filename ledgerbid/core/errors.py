"""
Contract errors.

Every failure raised by a contract function or by the ledger carries a
stable ``kind`` tag so callers (the CLI, client applications) can branch on
it without matching message text.
"""


class ContractError(Exception):
    """Base class for all signaled contract failures."""

    kind = "ContractError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(ContractError):
    """A referenced Request or Auction key is absent from world state."""

    kind = "NotFound"


class InvalidStateError(ContractError):
    """Operation attempted against an Auction that is not PENDING."""

    kind = "InvalidState"


class ConstraintViolationError(ContractError):
    """Offered delay exceeds the Request's reserve delay."""

    kind = "ConstraintViolation"


class ParseError(ContractError):
    """Stored value is not well-formed structured data."""

    kind = "ParseError"


class InvalidArgumentError(ContractError):
    """Malformed argument text or wrong number of arguments."""

    kind = "InvalidArgument"


class UnknownFunctionError(ContractError):
    """No contract function is registered under the given name."""

    kind = "UnknownFunction"


class MVCCConflictError(ContractError):
    """A key read during simulation changed before commit."""

    kind = "MVCCConflict"
