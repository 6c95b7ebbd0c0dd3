import numpy as np
import pytest

from ndops.dtypes import dtype_of, is_fp_dtype, normalize_dtype, np_dtype
from ndops.errors import OpValidationError


@pytest.mark.parametrize("dt", ["f16", "bf16", "f32", "f64", "float", "double", np.float32, np.dtype("float64")])
def test_fp_kinds(dt):
    assert is_fp_dtype(dt)


@pytest.mark.parametrize("dt", ["i8", "u8", "i32", "i64", "bool", "i1", "long", np.int32, None, "f8"])
def test_non_fp_kinds(dt):
    assert not is_fp_dtype(dt)


def test_normalize_aliases():
    assert normalize_dtype("FLOAT32") == "f32"
    assert normalize_dtype("int") == "i32"
    assert normalize_dtype(np.int64) == "i64"
    with pytest.raises(OpValidationError):
        normalize_dtype("f8")
    with pytest.raises(OpValidationError):
        normalize_dtype(np.complex64)


def test_numpy_mapping():
    assert np_dtype("bf16") is np.float16
    assert np_dtype("i1") is np.bool_
    assert dtype_of(np.zeros(2, dtype=np.uint8)) == "u8"
    assert dtype_of(np.array([True])) == "bool"
