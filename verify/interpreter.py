"""
Numpy reference engine for ndops descriptors.

Kernels are resolved by operator name, the same way the native backend does.
Supports eager execution of a single descriptor (``execute``) and ordered
execution of a ``Graph`` (``execute_graph``).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Sequence

import numpy as np

from ndops.config import default_axis
from ndops.dtypes import np_dtype
from ndops.errors import GraphValidationError, OpValidationError
from ndops.ir import Graph, Node
from ndops.ops import OpDescriptor
from ndops.opset import OpKind

logger = logging.getLogger(__name__)


def _softmax(x: np.ndarray, axis: int) -> np.ndarray:
    x_max = np.max(x, axis=axis, keepdims=True)
    e = np.exp(x - x_max)
    return e / np.sum(e, axis=axis, keepdims=True)


def _softmax_bp(x: np.ndarray, grad: np.ndarray, softmax_out: np.ndarray, axis: int) -> np.ndarray:
    # dL/dx = y * (g - sum(g * y)); x itself does not enter the formula.
    dot = np.sum(grad * softmax_out, axis=axis, keepdims=True)
    return softmax_out * (grad - dot)


KERNELS: Dict[str, Callable[..., np.ndarray]] = {
    OpKind.SOFTMAX.value: _softmax,
    OpKind.SOFTMAX_BP.value: _softmax_bp,
}

INTERPRETER_SUPPORTED_OPS: set[str] = set(KERNELS.keys())


def execute(desc: OpDescriptor) -> np.ndarray:
    """
    Run an eager descriptor.

    Writes into the descriptor's output when one was given, otherwise
    allocates a fresh array with the inferred dtype and the input shape.
    """
    out_dtype = desc.calculate_output_dtypes(desc.input_dtypes())[0]
    args = [np.asarray(a) for a in desc.operands]
    shape = args[0].shape
    for i, a in enumerate(args[1:], start=1):
        if a.shape != shape:
            raise OpValidationError(
                f"{desc.op_name()} operand {i} shape {a.shape} does not match operand 0 shape {shape}"
            )
    axis = _resolve_axis(desc.axis, len(shape), desc.op_name())
    result = _run_kernel(desc.op_name(), args, axis, np_dtype(out_dtype))

    out = desc.output
    if out is None:
        return result
    if not isinstance(out, np.ndarray):
        raise OpValidationError(f"{desc.op_name()} output must be a numpy array, got {type(out).__name__}")
    if out.shape != shape:
        raise OpValidationError(f"{desc.op_name()} output shape {out.shape} does not match input shape {shape}")
    if out.dtype != np.dtype(np_dtype(out_dtype)):
        raise OpValidationError(f"{desc.op_name()} output dtype {out.dtype} does not match inferred {out_dtype}")
    np.copyto(out, result)
    return out


def execute_graph(graph: Graph, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
    # Arity and dtype rules hold for every node, including hand-appended ones.
    graph.validate()
    missing = [name for name in graph.placeholders if name not in inputs]
    if missing:
        raise GraphValidationError(f"missing values for placeholders: {missing}")
    env: Dict[str, np.ndarray] = {}
    for name in graph.placeholders:
        arr = np.asarray(inputs[name])
        want = np.dtype(np_dtype(graph.dtype(name)))
        if arr.dtype != want:
            raise OpValidationError(f"placeholder {name} expects {want}, got {arr.dtype}")
        env[name] = arr
    _check_shape_bindings(graph, env)
    for node in graph.nodes:
        env[node.output] = _execute_node(node, env, graph)
    outputs = graph.outputs or ([graph.nodes[-1].output] if graph.nodes else [])
    return {name: env[name] for name in outputs}


def _execute_node(node: Node, env: Dict[str, np.ndarray], graph: Graph) -> np.ndarray:
    args = [_get(env, name) for name in node.inputs]
    axis = _resolve_axis(node.iargs[0] if node.iargs else None, args[0].ndim, node.op)
    return _run_kernel(node.op, args, axis, np_dtype(graph.dtype(node.output)))


def _run_kernel(op: str, args: Sequence[np.ndarray], axis: int, dtype: Any) -> np.ndarray:
    kernel = KERNELS.get(op)
    if kernel is None:
        raise OpValidationError(f"no reference kernel for op: {op}")
    logger.debug("dispatch %s axis=%d shapes=%s", op, axis, [a.shape for a in args])
    with np.errstate(over="ignore", under="ignore"):
        out = kernel(*args, axis)
    return np.asarray(out).astype(dtype, copy=False)


def _resolve_axis(axis: int | None, rank: int, op: str) -> int:
    if axis is None:
        axis = default_axis()
    if rank == 0:
        raise OpValidationError(f"{op} requires an input of rank >= 1")
    if axis < -rank or axis >= rank:
        raise OpValidationError(f"{op} axis out of range: axis={axis} rank={rank}")
    return axis % rank


def _get(env: Dict[str, np.ndarray], name: str) -> np.ndarray:
    if name not in env:
        raise KeyError(f"undefined value referenced: {name}")
    return env[name]


def _check_shape_bindings(graph: Graph, env: Dict[str, np.ndarray]) -> Dict[str, int]:
    """Bind symbolic dims from fed placeholders; reject inconsistent feeds."""
    bindings: Dict[str, int] = {}
    for name in graph.placeholders:
        declared = graph.shape(name)
        actual = env[name].shape
        if len(declared) != len(actual):
            raise OpValidationError(f"placeholder {name} expects rank {len(declared)}, got shape {actual}")
        for dim, val in zip(declared, actual):
            if dim.kind == "const":
                if dim.value != val:
                    raise OpValidationError(f"placeholder {name} expects shape {_fmt(declared)}, got {actual}")
                continue
            sym = str(dim.value)
            if sym in bindings and bindings[sym] != val:
                raise OpValidationError(f"Inconsistent binding for {sym}: {bindings[sym]} vs {val}")
            bindings[sym] = val
    return bindings


def _fmt(shape: List[Any]) -> str:
    return "[" + ", ".join(str(d.value) for d in shape) + "]"


__all__ = ["INTERPRETER_SUPPORTED_OPS", "KERNELS", "execute", "execute_graph"]
