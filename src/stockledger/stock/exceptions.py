"""Business errors raised by the inventory ledger.

Both are ValidationErrors so callers that already map Protean validation
failures to user-facing messages keep working. A missing record surfaces as
Protean's ObjectNotFoundError.
"""

from protean.exceptions import ValidationError


class InvalidQuantityError(ValidationError):
    """A quantity is non-positive, or a release exceeds the current reservation."""


class InsufficientStockError(ValidationError):
    """A reservation or deduction cannot be satisfied under the record's policy."""
