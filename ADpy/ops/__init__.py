"""
Operations module for ADpy.

Every operation recorded in a graph is one of these Functions. Subtraction,
negation and division are expressed with them on Node and have no Function
of their own.
"""

from .basic import Add, Multiply
from .elementwise import Relu
from .power import Power

__all__ = [
    "Add",
    "Multiply",
    "Power",
    "Relu",
]
