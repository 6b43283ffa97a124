"""
ADpy: Reverse-mode automatic differentiation over scalar and fixed-width lane graphs

Values are recorded in an append-only graph as they are computed; the gradient
of any node with respect to every value it depends on is then obtained with a
single reverse pass.
"""

from .core import (
    FixedLane,
    Graph,
    GraphConfig,
    GraphInvariantError,
    Node,
    Op,
    Scalar,
    ShapeMismatchError,
    UnsupportedOperandError,
    evaluate_gradients,
)
from .ops import Add, Multiply, Power, Relu
from .storage import LaneHandle, Layout

__version__ = "0.1.0"

__all__ = [
    "Graph",
    "GraphConfig",
    "Node",
    "Op",
    "Scalar",
    "FixedLane",
    "evaluate_gradients",
    "Add",
    "Multiply",
    "Power",
    "Relu",
    "Layout",
    "LaneHandle",
    "ShapeMismatchError",
    "UnsupportedOperandError",
    "GraphInvariantError",
]
