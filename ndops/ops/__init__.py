from .base import Differentiable, OpDescriptor, differentiate
from .registry import DESCRIPTORS, descriptor_for, differentiate_node, op_kind
from .softmax import Softmax, SoftmaxBp

__all__ = [
    "OpDescriptor",
    "Differentiable",
    "differentiate",
    "DESCRIPTORS",
    "descriptor_for",
    "differentiate_node",
    "op_kind",
    "Softmax",
    "SoftmaxBp",
]
