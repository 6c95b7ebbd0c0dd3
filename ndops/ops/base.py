"""
Operator descriptor base class and the differentiation capability.

A descriptor is a value object: operator name, ordered operands, optional
integer arguments and zero or one pre-allocated output. It is built either
against a ``Graph`` (graph mode, operands are variable names) or against
concrete numpy arrays (eager mode). It never computes anything itself; the
execution engine looks it up by ``op_name()`` and runs the kernel.

Only descriptors that also derive from ``Differentiable`` can be
differentiated. ``differentiate`` is the single runtime entry point and fails
with ``UnsupportedOperationError`` for everything else.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, ClassVar, List, Optional, Sequence, Tuple

from ndops.dtypes import FP_DTYPES, dtype_of, normalize_dtype
from ndops.errors import OpValidationError, UnsupportedOperationError
from ndops.ir import Graph, Node
from ndops.opset import OpKind


@dataclass(frozen=True, eq=False)
class OpDescriptor(abc.ABC):
    operands: Tuple[Any, ...]
    iargs: Tuple[int, ...] = ()
    outputs: Tuple[Any, ...] = ()

    kind: ClassVar[OpKind]
    num_inputs: ClassVar[int]

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))
        object.__setattr__(self, "iargs", tuple(self.iargs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        if len(self.operands) != self.num_inputs:
            raise OpValidationError(
                f"{self.op_name()} expects {self.num_inputs} operands, got {len(self.operands)}"
            )
        for i, operand in enumerate(self.operands):
            if operand is None:
                raise OpValidationError(f"{self.op_name()} operand {i} must not be None")
        for i, v in enumerate(self.iargs):
            if isinstance(v, bool) or not isinstance(v, int):
                raise OpValidationError(f"{self.op_name()} iargs[{i}] must be int, got {type(v).__name__}")
        if len(self.outputs) > 1:
            raise OpValidationError(f"{self.op_name()} takes at most one output, got {len(self.outputs)}")

    @classmethod
    def op_name(cls) -> str:
        return cls.kind.value

    @classmethod
    @abc.abstractmethod
    def calculate_output_dtypes(cls, dtypes: Optional[Sequence[Any]]) -> List[str]:
        """Infer output datatypes from operand datatypes; raise OpValidationError on violation."""

    @classmethod
    def from_node(cls, node: Node) -> "OpDescriptor":
        """Rebuild the graph-mode descriptor of a recorded node."""
        if node.op != cls.op_name():
            raise OpValidationError(f"node op {node.op!r} does not match descriptor {cls.op_name()!r}")
        return cls(operands=tuple(node.inputs), iargs=tuple(node.iargs), outputs=(node.output,))

    @property
    def axis(self) -> Optional[int]:
        return self.iargs[0] if self.iargs else None

    @property
    def output(self) -> Any:
        return self.outputs[0] if self.outputs else None

    def input_dtypes(self, graph: Graph | None = None) -> List[str]:
        if graph is not None:
            return [graph.dtype(name) for name in self.operands]
        return [dtype_of(arr) for arr in self.operands]

    @classmethod
    def _register(cls, graph: Graph, operands: Sequence[str], iargs: Sequence[int]) -> str:
        desc = cls(operands=tuple(operands), iargs=tuple(iargs))
        out_dtype = cls.calculate_output_dtypes(desc.input_dtypes(graph))[0]
        return graph.add_node(
            cls.op_name(),
            desc.operands,
            dtype=out_dtype,
            shape=graph.shape(desc.operands[0]),
            iargs=desc.iargs,
        )


class Differentiable(abc.ABC):
    """Capability of descriptors whose gradient can be added to a graph."""

    @abc.abstractmethod
    def do_diff(self, graph: Graph, grads: Sequence[str]) -> List[str]:
        """Register gradient nodes; return one gradient variable per operand."""


def differentiate(graph: Graph, op: OpDescriptor, grads: Sequence[str]) -> List[str]:
    if not isinstance(op, Differentiable):
        raise UnsupportedOperationError(f"Differentiating op {op.op_name()} not supported")
    return op.do_diff(graph, grads)


def axis_iargs(axis: Optional[int]) -> Tuple[int, ...]:
    if axis is None:
        return ()
    if isinstance(axis, bool) or not isinstance(axis, int):
        raise OpValidationError(f"axis must be int, got {type(axis).__name__}")
    return (axis,)


def wrap_or_none(output: Any) -> Tuple[Any, ...]:
    return () if output is None else (output,)


def require_fp(dtypes: Sequence[Any], idx: int) -> str:
    dt = normalize_dtype(dtypes[idx])
    if dt not in FP_DTYPES:
        raise OpValidationError(f"Input {idx} must be a floating point type, got {dtypes[idx]} in {list(dtypes)}")
    return dt


__all__ = [
    "OpDescriptor",
    "Differentiable",
    "differentiate",
    "axis_iargs",
    "wrap_or_none",
    "require_fp",
]
