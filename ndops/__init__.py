"""Operator descriptors with datatype inference and a numpy reference engine."""

from ndops.errors import GraphValidationError, OpValidationError, UnsupportedOperationError
from ndops.ir import Graph
from ndops.ops import Softmax, SoftmaxBp, differentiate
from ndops.opset import OpKind, SUPPORTED_OPS

__version__ = "0.1.0"

__all__ = [
    "Graph",
    "OpKind",
    "SUPPORTED_OPS",
    "Softmax",
    "SoftmaxBp",
    "differentiate",
    "OpValidationError",
    "GraphValidationError",
    "UnsupportedOperationError",
]
