import numpy as np
import pytest

from ndops.errors import OpValidationError, UnsupportedOperationError
from ndops.ir import Graph
from ndops.ops import OpDescriptor, Softmax, SoftmaxBp, descriptor_for, differentiate, differentiate_node
from ndops.opset import OpKind


def _arrays(dtype=np.float32, shape=(2, 3)):
    x = np.zeros(shape, dtype=dtype)
    g = np.ones(shape, dtype=dtype)
    y = np.full(shape, 1.0 / shape[-1], dtype=dtype)
    return x, g, y


def test_op_name_is_fixed():
    assert SoftmaxBp.op_name() == "softmax_bp"
    assert SoftmaxBp.eager(*_arrays()).op_name() == "softmax_bp"
    assert descriptor_for("softmax_bp") is SoftmaxBp


@pytest.mark.parametrize(
    "dtypes, expected",
    [
        (["f32", "f32", "f32"], ["f32"]),
        (["f16", "f16", "f16"], ["f16"]),
        (["bf16", "bf16", "bf16"], ["bf16"]),
        (["float64", "float64", "float64"], ["f64"]),
    ],
)
def test_output_dtype_mirrors_input(dtypes, expected):
    assert SoftmaxBp.calculate_output_dtypes(dtypes) == expected


def test_third_operand_dtype_is_not_checked():
    assert SoftmaxBp.calculate_output_dtypes(["f64", "f64", "f32"]) == ["f64"]
    assert SoftmaxBp.calculate_output_dtypes(["f32", "f32", "i32"]) == ["f32"]


@pytest.mark.parametrize("dtypes", [None, [], ["f32"], ["f32", "f32"], ["f32", "f32", "f32", "f32"]])
def test_wrong_arity_rejected(dtypes):
    with pytest.raises(OpValidationError, match="Expected exactly 3"):
        SoftmaxBp.calculate_output_dtypes(dtypes)


def test_arity_message_reports_dtype_list():
    with pytest.raises(OpValidationError) as excinfo:
        SoftmaxBp.calculate_output_dtypes(["f32", "f64"])
    assert "['f32', 'f64']" in str(excinfo.value)


@pytest.mark.parametrize("bad", ["i32", "i64", "i8", "u8", "bool"])
def test_non_fp_first_operand_rejected(bad):
    with pytest.raises(OpValidationError, match="Input 0 must be a floating point type"):
        SoftmaxBp.calculate_output_dtypes([bad, "f32", "f32"])


def test_non_fp_second_operand_rejected():
    with pytest.raises(OpValidationError, match="Input 1 must be a floating point type"):
        SoftmaxBp.calculate_output_dtypes(["f32", "i32", "f32"])


def test_mismatched_fp_operands_rejected():
    with pytest.raises(OpValidationError, match="same type"):
        SoftmaxBp.calculate_output_dtypes(["f32", "f64", "f32"])


def test_eager_without_output_records_operands_only():
    x, g, y = _arrays()
    desc = SoftmaxBp.eager(x, g, y)
    assert desc.operands[0] is x and desc.operands[1] is g and desc.operands[2] is y
    assert desc.outputs == ()
    assert desc.iargs == ()
    assert desc.axis is None
    assert desc.input_dtypes() == ["f32", "f32", "f32"]


def test_eager_with_output_and_axis():
    x, g, y = _arrays()
    out = np.empty_like(x)
    desc = SoftmaxBp.eager(x, g, y, output=out, axis=0)
    assert desc.outputs == (out,)
    assert desc.output is out
    assert desc.iargs == (0,)


def test_eager_rejects_missing_operand():
    x, g, _ = _arrays()
    with pytest.raises(OpValidationError, match="operand 2"):
        SoftmaxBp.eager(x, g, None)


def test_non_integer_axis_rejected():
    with pytest.raises(OpValidationError, match="axis must be int"):
        SoftmaxBp.eager(*_arrays(), axis=1.0)
    with pytest.raises(OpValidationError, match="axis must be int"):
        SoftmaxBp.eager(*_arrays(), axis=True)


def test_descriptor_is_immutable():
    desc = SoftmaxBp.eager(*_arrays())
    with pytest.raises(AttributeError):
        desc.iargs = (1,)


def test_graph_build_registers_node_with_axis():
    g = Graph(name="bp")
    g.var("x", "f32", ["M", "N"])
    g.var("gy", "f32", ["M", "N"])
    g.var("y", "f32", ["M", "N"])
    before = dict(g.tensors)

    out = SoftmaxBp.build(g, "x", "gy", "y", axis=1)

    assert out == "softmax_bp"
    node = g.nodes[-1]
    assert node.op == "softmax_bp"
    assert node.inputs == ["x", "gy", "y"]
    assert node.iargs == [1]
    assert g.dtype(out) == "f32"
    assert g.shape(out) == g.shape("x")
    for name, t in before.items():
        assert g.tensors[name] == t


def test_graph_build_without_axis_has_no_iargs():
    g = Graph()
    for name in ("x", "gy", "y"):
        g.var(name, "f64", [4])
    SoftmaxBp.build(g, "x", "gy", "y")
    assert g.nodes[-1].iargs == []


def test_graph_build_validates_dtypes_before_inserting():
    g = Graph()
    g.var("x", "i32", [4])
    g.var("gy", "f32", [4])
    g.var("y", "f32", [4])
    with pytest.raises(OpValidationError, match="Input 0"):
        SoftmaxBp.build(g, "x", "gy", "y")
    assert g.nodes == []


def test_graph_build_allocates_fresh_output_names():
    g = Graph()
    for name in ("x", "gy", "y"):
        g.var(name, "f32", [4])
    first = SoftmaxBp.build(g, "x", "gy", "y")
    second = SoftmaxBp.build(g, "x", "gy", "y")
    assert (first, second) == ("softmax_bp", "softmax_bp_1")


def test_differentiating_softmax_bp_is_unsupported():
    g = Graph()
    for name in ("x", "gy", "y", "gg"):
        g.var(name, "f32", [4])
    out = SoftmaxBp.build(g, "x", "gy", "y")
    with pytest.raises(UnsupportedOperationError, match="Differentiating op softmax_bp not supported"):
        differentiate_node(g, g.producer(out), ["gg"])
    with pytest.raises(UnsupportedOperationError):
        differentiate(g, SoftmaxBp.eager(*_arrays()), [])
    assert not hasattr(SoftmaxBp, "do_diff")


def test_softmax_gradient_builds_softmax_bp_node():
    g = Graph()
    g.var("x", "f32", ["B", "C"])
    g.var("gy", "f32", ["B", "C"])
    y = Softmax.build(g, "x", axis=1)

    (dx,) = differentiate_node(g, g.producer(y), ["gy"])

    node = g.producer(dx)
    assert node.op == "softmax_bp"
    assert node.inputs == ["x", "gy", y]
    assert node.iargs == [1]


def test_fp_failure_reports_full_dtype_list():
    with pytest.raises(OpValidationError) as excinfo:
        SoftmaxBp.calculate_output_dtypes(["f32", "i32", "f32"])
    assert "['f32', 'i32', 'f32']" in str(excinfo.value)


def test_descriptor_without_dtype_rule_cannot_be_built():
    class NoRule(OpDescriptor):
        kind = OpKind.SOFTMAX
        num_inputs = 1

    with pytest.raises(TypeError):
        NoRule(operands=("x",))
