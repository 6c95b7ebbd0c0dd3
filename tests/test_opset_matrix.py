from __future__ import annotations

import pytest

from ndops.errors import OpValidationError
from ndops.ir.ir_types import SUPPORTED_OPS as IR_SUPPORTED_OPS
from ndops.ops import DESCRIPTORS, Differentiable, descriptor_for
from ndops.opset import GRADIENT_OPS, SUPPORTED_OPS, OpKind
from verify.interpreter import INTERPRETER_SUPPORTED_OPS


def test_opset_is_single_source_of_truth() -> None:
    assert SUPPORTED_OPS == IR_SUPPORTED_OPS


def test_every_kind_has_a_descriptor() -> None:
    assert set(DESCRIPTORS) == set(OpKind)
    for kind, cls in DESCRIPTORS.items():
        assert cls.op_name() == kind.value


def test_every_op_has_a_reference_kernel() -> None:
    missing = sorted(SUPPORTED_OPS - INTERPRETER_SUPPORTED_OPS)
    assert not missing, f"interpreter missing ops: {missing}"


def test_gradient_ops_are_not_differentiable() -> None:
    for name in GRADIENT_OPS:
        assert not issubclass(descriptor_for(name), Differentiable)


def test_unknown_name_suggests_closest() -> None:
    with pytest.raises(OpValidationError, match="Did you mean 'softmax'"):
        descriptor_for("sofmax")
