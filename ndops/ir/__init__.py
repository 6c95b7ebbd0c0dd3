from .ir_types import (
    GraphValidationError,
    Dim,
    TensorType,
    Node,
    Graph,
    parse_dim,
)

__all__ = [
    "GraphValidationError",
    "Dim",
    "TensorType",
    "Node",
    "Graph",
    "parse_dim",
]
