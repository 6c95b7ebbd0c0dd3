"""
Softmax and its backward op.

``softmax_bp`` takes (input, upstream gradient, forward softmax output) and an
optional axis, and yields the gradient with respect to the softmax input. It
is produced by differentiating ``softmax`` and is not itself differentiable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ndops.errors import OpValidationError
from ndops.ir import Graph
from ndops.ops.base import (
    Differentiable,
    OpDescriptor,
    axis_iargs,
    require_fp,
    wrap_or_none,
)
from ndops.opset import OpKind


@dataclass(frozen=True, eq=False)
class Softmax(OpDescriptor, Differentiable):
    kind = OpKind.SOFTMAX
    num_inputs = 1

    @classmethod
    def build(cls, graph: Graph, x: str, axis: Optional[int] = None) -> str:
        return cls._register(graph, [x], axis_iargs(axis))

    @classmethod
    def eager(cls, x: Any, *, output: Any = None, axis: Optional[int] = None) -> "Softmax":
        return cls(operands=(x,), iargs=axis_iargs(axis), outputs=wrap_or_none(output))

    @classmethod
    def calculate_output_dtypes(cls, dtypes: Optional[Sequence[Any]]) -> List[str]:
        if dtypes is None or len(dtypes) != 1:
            raise OpValidationError(f"Expected exactly 1 input datatype for {cls.op_name()}, got {dtypes}")
        return [require_fp(dtypes, 0)]

    def do_diff(self, graph: Graph, grads: Sequence[str]) -> List[str]:
        if len(grads) != 1:
            raise OpValidationError(f"{self.op_name()} has one output, got {len(grads)} gradients")
        if not isinstance(self.output, str):
            raise OpValidationError(f"{self.op_name()} gradient needs the graph-mode output variable")
        return [SoftmaxBp.build(graph, self.operands[0], grads[0], self.output, axis=self.axis)]


@dataclass(frozen=True, eq=False)
class SoftmaxBp(OpDescriptor):
    kind = OpKind.SOFTMAX_BP
    num_inputs = 3

    @classmethod
    def build(
        cls,
        graph: Graph,
        x: str,
        grad: str,
        softmax_out: str,
        axis: Optional[int] = None,
    ) -> str:
        """Register a ``softmax_bp`` node; return its output variable name."""
        return cls._register(graph, [x, grad, softmax_out], axis_iargs(axis))

    @classmethod
    def eager(
        cls,
        x: Any,
        grad: Any,
        softmax_out: Any,
        *,
        output: Any = None,
        axis: Optional[int] = None,
    ) -> "SoftmaxBp":
        """
        Record concrete operands for the engine. When ``output`` is None the
        engine allocates one with the inferred dtype and the input shape.
        """
        return cls(operands=(x, grad, softmax_out), iargs=axis_iargs(axis), outputs=wrap_or_none(output))

    @classmethod
    def calculate_output_dtypes(cls, dtypes: Optional[Sequence[Any]]) -> List[str]:
        if dtypes is None or len(dtypes) != 3:
            raise OpValidationError(f"Expected exactly 3 input datatypes for {cls.op_name()}, got {dtypes}")
        d0 = require_fp(dtypes, 0)
        d1 = require_fp(dtypes, 1)
        if d0 != d1:
            raise OpValidationError(f"Both input must be same type: got {list(dtypes)}")
        # Input 2 (forward output) is deliberately left unchecked.
        return [d0]


__all__ = ["Softmax", "SoftmaxBp"]
