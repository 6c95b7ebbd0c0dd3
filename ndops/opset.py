"""
Closed operator set for ndops.

Every operator the library knows about is one member of ``OpKind``; its value
is the dispatch key the execution engine uses to find a kernel. Adding an
operator means adding a member here, a descriptor in ``ndops.ops`` and a
kernel in ``verify.interpreter`` (tests check the three stay in sync).

This module only defines names. It does NOT import ``ndops.ir`` or
``ndops.ops`` so that both can depend on it.
"""

from __future__ import annotations

import enum


class OpKind(str, enum.Enum):
    SOFTMAX = "softmax"
    SOFTMAX_BP = "softmax_bp"


SUPPORTED_OPS: set[str] = {kind.value for kind in OpKind}

# Backward ops are produced by differentiating a forward op; they are not
# differentiated themselves.
GRADIENT_OPS: set[str] = {OpKind.SOFTMAX_BP.value}


__all__ = ["OpKind", "SUPPORTED_OPS", "GRADIENT_OPS"]
