from .interpreter import INTERPRETER_SUPPORTED_OPS, execute, execute_graph
from .tolerances import Tolerances, tolerances_for

__all__ = [
    "INTERPRETER_SUPPORTED_OPS",
    "execute",
    "execute_graph",
    "Tolerances",
    "tolerances_for",
]
