"""
Graph record: the symbolic handle that graph-mode descriptors register into.

A ``Graph`` holds typed variables (placeholders and node outputs) and an
append-only list of ``Node`` records, each naming an operator from the closed
opset, its ordered operand variables and optional integer arguments. It
round-trips through JSON and validates on load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Literal, Sequence

from ndops.diagnostics import closest_match, format_node_snippet
from ndops.dtypes import SUPPORTED_DTYPES, normalize_dtype
from ndops.errors import GraphValidationError, OpValidationError
from ndops.opset import SUPPORTED_OPS


__all__ = [
    "GraphValidationError",
    "Dim",
    "TensorType",
    "Node",
    "Graph",
    "parse_dim",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dim:
    kind: Literal["sym", "const"]
    value: str | int


@dataclass(frozen=True)
class TensorType:
    dtype: str
    shape: List[Dim]


@dataclass(frozen=True)
class Node:
    op: str
    inputs: List[str]
    output: str
    iargs: List[int] = field(default_factory=list)


@dataclass
class Graph:
    name: str = "graph"
    tensors: Dict[str, TensorType] = field(default_factory=dict)
    nodes: List[Node] = field(default_factory=list)
    placeholders: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)

    def var(self, name: str, dtype: Any, shape: Sequence[int | str]) -> str:
        """Declare a placeholder variable fed at execution time."""
        if name in self.tensors:
            raise GraphValidationError(f"variable already defined: {name}")
        try:
            dt = normalize_dtype(dtype)
        except OpValidationError as e:
            raise GraphValidationError(f"variable {name}: {e}") from e
        self.tensors[name] = TensorType(dtype=dt, shape=[parse_dim(d) for d in shape])
        self.placeholders.append(name)
        return name

    def add_node(
        self,
        op: str,
        inputs: Sequence[str],
        *,
        dtype: str,
        shape: Sequence[Dim | int | str],
        iargs: Sequence[int] = (),
    ) -> str:
        """
        Register a node for ``op`` with the given ordered operands.

        Returns the freshly allocated output variable name. The graph is the
        only thing mutated; operand variables are left untouched.
        """
        output = self._fresh_name(op)
        node = Node(op=op, inputs=list(inputs), output=output, iargs=list(iargs))
        _validate_node(node, len(self.nodes), set(self.tensors.keys()))
        out_dtype = normalize_dtype(dtype)
        _validate_node_types(node, len(self.nodes), self.tensors, out_dtype)
        dims = [d if isinstance(d, Dim) else parse_dim(d) for d in shape]
        self.tensors[output] = TensorType(dtype=out_dtype, shape=dims)
        self.nodes.append(node)
        logger.debug("graph %s: added %s", self.name, format_node_snippet(node, idx=len(self.nodes) - 1))
        return output

    def mark_output(self, name: str) -> None:
        if name not in self.tensors:
            raise GraphValidationError(f"cannot mark unknown variable as output: {name}")
        if name not in self.outputs:
            self.outputs.append(name)

    def dtype(self, name: str) -> str:
        return self._tensor(name).dtype

    def shape(self, name: str) -> List[Dim]:
        return list(self._tensor(name).shape)

    def producer(self, name: str) -> Node | None:
        for node in self.nodes:
            if node.output == name:
                return node
        return None

    def _tensor(self, name: str) -> TensorType:
        t = self.tensors.get(name)
        if t is None:
            sugg = closest_match(name, self.tensors.keys(), n=1)
            hint = f" (did you mean '{sugg[0]}'?)" if sugg else ""
            raise GraphValidationError(f"undefined variable '{name}'{hint}")
        return t

    def _fresh_name(self, base: str) -> str:
        if base not in self.tensors:
            return base
        i = 1
        while f"{base}_{i}" in self.tensors:
            i += 1
        return f"{base}_{i}"

    @classmethod
    def from_json_dict(cls, data: Dict[str, Any]) -> "Graph":
        name = data.get("name") or "graph"
        tensors_json = data.get("tensors") or {}
        if not isinstance(tensors_json, dict):
            raise GraphValidationError("tensors must be an object")
        tensors = {k: _tensor_from_json(k, v) for k, v in tensors_json.items()}

        nodes_json = data.get("nodes") or []
        if not isinstance(nodes_json, list):
            raise GraphValidationError("nodes must be a list")
        nodes = [_node_from_json(n) for n in nodes_json]

        placeholders = data.get("placeholders")
        if placeholders is None:
            produced = {n.output for n in nodes}
            placeholders = [k for k in tensors if k not in produced]
        if not isinstance(placeholders, list):
            raise GraphValidationError("placeholders must be a list if provided")

        outputs = data.get("outputs")
        if outputs is None:
            outputs = [nodes[-1].output] if nodes else []
        if not isinstance(outputs, list):
            raise GraphValidationError("outputs must be a list if provided")

        inst = cls(name=name, tensors=tensors, nodes=nodes, placeholders=placeholders, outputs=outputs)
        inst.validate()
        return inst

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tensors": {k: _tensor_to_json(v) for k, v in self.tensors.items()},
            "nodes": [_node_to_json(n) for n in self.nodes],
            "placeholders": list(self.placeholders),
            "outputs": list(self.outputs),
        }

    def validate(self) -> None:
        _validate_tensors(self.tensors)
        _validate_nodes(self.nodes, self.tensors, self.placeholders)
        _validate_outputs(self.outputs, self.tensors)


def parse_dim(x: int | str) -> Dim:
    if isinstance(x, bool):
        raise GraphValidationError(f"invalid dimension type: {type(x)}")
    if isinstance(x, int):
        if x < 0:
            raise GraphValidationError(f"dimension must be non-negative, got {x}")
        return Dim(kind="const", value=x)
    if isinstance(x, str):
        return Dim(kind="sym", value=x)
    raise GraphValidationError(f"invalid dimension type: {type(x)}")


def _tensor_from_json(name: str, data: Dict[str, Any]) -> TensorType:
    if not isinstance(data, dict):
        raise GraphValidationError(f"tensor {name} must be an object")
    dtype = data.get("dtype")
    if dtype not in SUPPORTED_DTYPES:
        raise GraphValidationError(f"tensors.{name}.dtype unsupported: {dtype}")
    shape_raw = data.get("shape")
    if not isinstance(shape_raw, list):
        raise GraphValidationError(f"tensors.{name}.shape must be a list")
    return TensorType(dtype=dtype, shape=[parse_dim(d) for d in shape_raw])


def _tensor_to_json(t: TensorType) -> Dict[str, Any]:
    return {"dtype": t.dtype, "shape": [d.value for d in t.shape]}


def _node_from_json(data: Dict[str, Any]) -> Node:
    if not isinstance(data, dict):
        raise GraphValidationError("each node must be an object")
    op = data.get("op")
    inputs = data.get("inputs") or []
    output = data.get("output")
    iargs = data.get("iargs") or []
    if not isinstance(op, str):
        raise GraphValidationError("node.op must be a string")
    if not isinstance(inputs, list):
        raise GraphValidationError(f"node.inputs must be a list for op {op}")
    if not isinstance(output, str):
        raise GraphValidationError(f"node.output must be a string for op {op}")
    if not isinstance(iargs, list):
        raise GraphValidationError(f"node.iargs must be a list for op {op}")
    return Node(op=op, inputs=inputs, output=output, iargs=iargs)


def _node_to_json(node: Node) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "op": node.op,
        "inputs": list(node.inputs),
        "output": node.output,
    }
    if node.iargs:
        data["iargs"] = list(node.iargs)
    return data


def _validate_tensors(tensors: Dict[str, TensorType]) -> None:
    for name, t in tensors.items():
        if t.dtype not in SUPPORTED_DTYPES:
            raise GraphValidationError(f"tensors.{name}.dtype unsupported: {t.dtype}")
        for idx, d in enumerate(t.shape):
            if not isinstance(d, Dim):
                raise GraphValidationError(f"tensors.{name}.shape[{idx}] is not a Dim")
            if d.kind == "const" and not isinstance(d.value, int):
                raise GraphValidationError(f"tensors.{name}.shape[{idx}] const must be int")
            if d.kind == "sym" and not isinstance(d.value, str):
                raise GraphValidationError(f"tensors.{name}.shape[{idx}] sym must be str")


def _validate_nodes(nodes: List[Node], tensors: Dict[str, TensorType], placeholders: List[str]) -> None:
    for i, name in enumerate(placeholders):
        if name not in tensors:
            raise GraphValidationError(f"placeholders[{i}] not found in tensors: {name}")
    available = set(placeholders)
    for idx, node in enumerate(nodes):
        _validate_node(node, idx, available)
        if node.output not in tensors:
            raise GraphValidationError(f"node[{idx}].output has no tensor type: {node.output}")
        _validate_node_types(node, idx, tensors, tensors[node.output].dtype)
        available.add(node.output)


def _validate_node(node: Node, idx: int, available: set[str]) -> None:
    if node.op not in SUPPORTED_OPS:
        sugg = closest_match(node.op, SUPPORTED_OPS, n=1)
        hint = f"\nNote: Did you mean '{sugg[0]}'?" if sugg else ""
        raise GraphValidationError(f"node[{idx}].op unsupported: {node.op}{hint}")
    for inp in node.inputs:
        if inp not in available:
            msg_lines = [
                f"Error: node[{idx}] '{node.op}' references undefined variable '{inp}'",
                f"  -> {format_node_snippet(node, idx=idx)}",
            ]
            sugg = closest_match(str(inp), available, n=1)
            if sugg:
                msg_lines.append(f"Note: Did you mean '{sugg[0]}'?")
            msg_lines.append(f"Note: Available variables at this point: {sorted(available)}")
            raise GraphValidationError("\n".join(msg_lines))
    if node.output in available:
        raise GraphValidationError(f"node[{idx}].output duplicates an existing variable: {node.output}")
    for j, v in enumerate(node.iargs):
        if isinstance(v, bool) or not isinstance(v, int):
            raise GraphValidationError(f"node[{idx}].iargs[{j}] must be int, got {type(v).__name__}")


def _validate_node_types(node: Node, idx: int, tensors: Dict[str, TensorType], out_dtype: str) -> None:
    """Apply the operator's arity and datatype rule to a recorded node."""
    from ndops.ops.registry import descriptor_for  # noqa: PLC0415

    cls = descriptor_for(node.op)
    snippet = format_node_snippet(node, idx=idx)
    if len(node.inputs) != cls.num_inputs:
        raise GraphValidationError(
            f"node[{idx}] {node.op} requires {cls.num_inputs} inputs, got {len(node.inputs)}\n  -> {snippet}"
        )
    in_dtypes = [tensors[name].dtype for name in node.inputs]
    try:
        inferred = cls.calculate_output_dtypes(in_dtypes)[0]
    except OpValidationError as e:
        raise GraphValidationError(f"node[{idx}] {node.op}: {e}\n  -> {snippet}") from e
    if inferred != out_dtype:
        raise GraphValidationError(
            f"node[{idx}] {node.op} output {node.output} declared {out_dtype}, inferred {inferred}\n  -> {snippet}"
        )


def _validate_outputs(outputs: List[str], tensors: Dict[str, TensorType]) -> None:
    for i, out in enumerate(outputs):
        if out not in tensors:
            raise GraphValidationError(f"outputs[{i}] not found in tensors: {out}")
