"""
Numerical tolerances for comparing reference kernels against another
implementation (e.g. torch autograd).

Per-op baselines are for f32/f64 outputs; half-precision outputs never go
tighter than the legacy 1e-3 default.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ndops.dtypes import normalize_dtype
from ndops.ops import op_kind
from ndops.opset import OpKind


@dataclass(frozen=True)
class Tolerances:
    atol: float
    rtol: float

    def to_dict(self) -> Dict[str, float]:
        return {"atol": float(self.atol), "rtol": float(self.rtol)}


_OP_TOL_F32: Dict[OpKind, Tolerances] = {
    OpKind.SOFTMAX: Tolerances(1e-5, 1e-5),
    # Backward accumulates a dot product along the axis.
    OpKind.SOFTMAX_BP: Tolerances(1e-4, 1e-4),
}

_OP_TOL_F64: Dict[OpKind, Tolerances] = {
    OpKind.SOFTMAX: Tolerances(1e-12, 1e-12),
    OpKind.SOFTMAX_BP: Tolerances(1e-10, 1e-10),
}

_LEGACY_DEFAULT = Tolerances(1e-3, 1e-3)


def tolerances_for(op: str | OpKind, dtype: Any) -> Tolerances:
    kind = op_kind(op)
    dt = normalize_dtype(dtype)
    if dt == "f64":
        return _OP_TOL_F64.get(kind, _LEGACY_DEFAULT)
    if dt == "f32":
        return _OP_TOL_F32.get(kind, _LEGACY_DEFAULT)
    if dt in {"f16", "bf16"}:
        base = _OP_TOL_F32.get(kind, _LEGACY_DEFAULT)
        return Tolerances(atol=max(base.atol, _LEGACY_DEFAULT.atol), rtol=max(base.rtol, _LEGACY_DEFAULT.rtol))
    return Tolerances(0.0, 0.0)


__all__ = ["Tolerances", "tolerances_for"]
