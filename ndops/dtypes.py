"""
Datatype vocabulary shared by descriptors, the graph record and the interpreter.

Dtypes are plain short strings (``"f32"``, ``"i64"``, ...). Long names and
numpy dtypes are accepted on input and normalised.
"""

from __future__ import annotations

from typing import Any, Literal

import numpy as np

from ndops.errors import OpValidationError


AllowedDType = Literal[
    "f16",
    "bf16",
    "f32",
    "f64",
    "i8",
    "u8",
    "i1",
    "i32",
    "i64",
    "bool",
]

FP_DTYPES: set[str] = {"f16", "bf16", "f32", "f64"}
INT_DTYPES: set[str] = {"i8", "u8", "i32", "i64"}
BOOL_DTYPES: set[str] = {"bool", "i1"}

SUPPORTED_DTYPES: set[str] = set().union(FP_DTYPES, INT_DTYPES, BOOL_DTYPES)

_ALIASES = {
    "float16": "f16",
    "half": "f16",
    "bfloat16": "bf16",
    "float32": "f32",
    "float": "f32",
    "float64": "f64",
    "double": "f64",
    "int8": "i8",
    "uint8": "u8",
    "int32": "i32",
    "int": "i32",
    "int64": "i64",
    "long": "i64",
    "bool_": "bool",
}


def normalize_dtype(dtype: Any) -> str:
    if dtype is None:
        raise OpValidationError("dtype must not be None")
    if isinstance(dtype, str):
        dt = dtype.strip().lower()
        dt = _ALIASES.get(dt, dt)
        if dt in SUPPORTED_DTYPES:
            return dt
        raise OpValidationError(f"unsupported dtype: {dtype!r}")
    try:
        np_dt = np.dtype(dtype)
    except TypeError as e:
        raise OpValidationError(f"unsupported dtype: {dtype!r}") from e
    return _from_numpy(np_dt)


def is_fp_dtype(dtype: Any) -> bool:
    """True for every floating-point kind, False for integer and boolean kinds."""
    try:
        return normalize_dtype(dtype) in FP_DTYPES
    except OpValidationError:
        return False


def np_dtype(dtype: Any) -> Any:
    dt = normalize_dtype(dtype)
    if dt == "f16":
        return np.float16
    if dt == "bf16":
        # NumPy has no native bfloat16; the reference interpreter computes it in fp16.
        return np.float16
    if dt == "f32":
        return np.float32
    if dt == "f64":
        return np.float64
    if dt == "i32":
        return np.int32
    if dt == "i64":
        return np.int64
    if dt == "i8":
        return np.int8
    if dt == "u8":
        return np.uint8
    return np.bool_


def dtype_of(array: Any) -> str:
    return _from_numpy(np.asarray(array).dtype)


def _from_numpy(d: np.dtype) -> str:
    if d == np.float16:
        return "f16"
    if d == np.float32:
        return "f32"
    if d == np.float64:
        return "f64"
    if d == np.int8:
        return "i8"
    if d == np.uint8:
        return "u8"
    if d == np.int32:
        return "i32"
    if d == np.int64:
        return "i64"
    if d == np.bool_:
        return "bool"
    raise OpValidationError(f"unsupported numpy dtype: {d}")


__all__ = [
    "AllowedDType",
    "FP_DTYPES",
    "INT_DTYPES",
    "BOOL_DTYPES",
    "SUPPORTED_DTYPES",
    "normalize_dtype",
    "is_fp_dtype",
    "np_dtype",
    "dtype_of",
]
