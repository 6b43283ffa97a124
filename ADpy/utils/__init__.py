"""
Utils module for ADpy.
"""

from .gradcheck import check_gradients, numerical_gradient

__all__ = ["check_gradients", "numerical_gradient"]
