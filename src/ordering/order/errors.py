"""Order-specific errors.

Built on Protean's exception hierarchy so they carry the same
``{"field": ["message"]}`` payload and are recognised by
``protean.integrations.fastapi``. Malformed input uses Protean's own
``ValidationError`` directly.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ProteanException


class InvalidStateError(InvalidOperationError):
    """The operation is not allowed while the order is in its current status."""


class InvalidTransitionError(InvalidOperationError):
    """The requested status is not reachable from the current status."""


class NotFoundError(ObjectNotFoundError):
    """A referenced order or order item does not exist."""


class UniquenessConflict(ProteanException):
    """An order number is already taken.

    Transient: the caller regenerates the number and retries once.
    """
