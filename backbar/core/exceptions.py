"""Exception hierarchy for the inventory engine.

Catch ``BackbarError`` to handle every failure raised by the engine, or one
of the subclasses when the caller needs to react differently:

- ``ValidationError``: user input rejected, one flag per failing field.
- ``TransportError``: the persistence collaborator could not be reached or
  refused the request. State is unchanged; the operation may be retried.
- ``InvariantViolation``: a write would break a data invariant. This is a
  defect and is never caught by the engine.
"""

from collections.abc import Iterable


class BackbarError(Exception):
    """Base exception for all engine errors."""

    code: str = "backbar_error"

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            message = "An unspecified inventory error occurred."
        super().__init__(message)


class ValidationError(BackbarError):
    """Input failed validation.

    ``fields`` maps every failing field name to ``True`` so that a form can
    highlight all invalid inputs at once.
    """

    code = "validation_error"

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields: dict[str, bool] = {name: True for name in fields}
        super().__init__(f"Invalid fields: {', '.join(sorted(self.fields))}")


class TransportError(BackbarError):
    """Network or permission failure talking to the persistence collaborator."""

    code = "transport_error"


class InvariantViolation(BackbarError):
    """A write would break a data invariant (e.g. negative stock)."""

    code = "invariant_violation"


class NotAuthenticatedError(BackbarError):
    """No current owner; queries and mutations may not run."""

    code = "not_authenticated"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "No authenticated owner")


class ItemNotFoundError(BackbarError):
    code = "item_not_found"

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found")
