"""Maps every ``OpKind`` to its descriptor class."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Type

from ndops.diagnostics import unknown_name_message
from ndops.errors import OpValidationError
from ndops.ir import Graph, Node
from ndops.ops.base import OpDescriptor, differentiate
from ndops.ops.softmax import Softmax, SoftmaxBp
from ndops.opset import SUPPORTED_OPS, OpKind

logger = logging.getLogger(__name__)


DESCRIPTORS: Dict[OpKind, Type[OpDescriptor]] = {
    OpKind.SOFTMAX: Softmax,
    OpKind.SOFTMAX_BP: SoftmaxBp,
}


def op_kind(name: str | OpKind) -> OpKind:
    if isinstance(name, OpKind):
        return name
    try:
        return OpKind(name)
    except ValueError:
        raise OpValidationError(unknown_name_message("op", str(name), sorted(SUPPORTED_OPS))) from None


def descriptor_for(name: str | OpKind) -> Type[OpDescriptor]:
    return DESCRIPTORS[op_kind(name)]


def differentiate_node(graph: Graph, node: Node, grads: Sequence[str]) -> List[str]:
    """
    Add the gradient of a recorded node to ``graph``.

    Raises ``UnsupportedOperationError`` when the node's operator has no
    gradient (e.g. ``softmax_bp``).
    """
    desc = descriptor_for(node.op).from_node(node)
    logger.debug("differentiating %s -> %s", node.op, node.output)
    return differentiate(graph, desc, grads)


__all__ = ["DESCRIPTORS", "op_kind", "descriptor_for", "differentiate_node"]
