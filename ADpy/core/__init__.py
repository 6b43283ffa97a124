"""
Core functionality for ADpy.

This module contains the graph data model, the lane variants, the Function base
class and the gradient evaluator.
"""

from .autograd import GradientEvaluator, evaluate_gradients, get_evaluator
from .config import GraphConfig
from .context import Context
from .errors import GraphInvariantError, ShapeMismatchError, UnsupportedOperandError
from .function import Function
from .graph import Graph
from .lanes import FixedLane, Lanes, Scalar
from .node import Node, Op

__all__ = [
    "Graph",
    "GraphConfig",
    "Node",
    "Op",
    "Lanes",
    "Scalar",
    "FixedLane",
    "Function",
    "Context",
    "GradientEvaluator",
    "get_evaluator",
    "evaluate_gradients",
    "ShapeMismatchError",
    "UnsupportedOperandError",
    "GraphInvariantError",
]
