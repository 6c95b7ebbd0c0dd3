from __future__ import annotations


class OpValidationError(ValueError):
    """Raised when an operator precondition (arity, dtype, axis) is violated."""


class GraphValidationError(OpValidationError):
    """Raised when a graph record is malformed."""


class UnsupportedOperationError(NotImplementedError):
    """Raised when an operator is asked for a capability it does not have."""


__all__ = ["OpValidationError", "GraphValidationError", "UnsupportedOperationError"]
