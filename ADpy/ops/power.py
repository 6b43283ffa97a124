from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..core.context import Context
from ..core.errors import UnsupportedOperandError
from ..core.function import Function
from ..core.node import Node, Op, Operand


class Power(Function):
    op = Op.POW

    @staticmethod
    def forward(ctx: Context, base: Node, exponent: Operand) -> NDArray[Any]:
        """
        Computes the elementwise power operation: base ^ exponent.

        Args:
            ctx: Context object for recording provenance
            base: The node being raised to a power
            exponent: Real scalar, lane literal or node. A node only supplies its
                data; the exponent is a constant for gradient purposes.

        Returns:
            The result data

        Note:
            A zero base with a negative exponent yields inf rather than raising.
        """
        if isinstance(exponent, Node):
            if exponent not in base.graph:
                raise UnsupportedOperandError("Cannot combine nodes from different graphs")
            exponent = exponent.data.copy()
        else:
            exponent = base.graph.coerce(exponent)

        ctx.save_for_backward(base)
        ctx.save_arguments(aux=exponent)

        return np.power(base.data, exponent)

    @staticmethod
    def backward(node: Node, grad_output: NDArray[Any]) -> None:
        """
        Computes the gradient of the power operation.

        For f(x) = x^n, the derivative is f'(x) = nx^(n-1)

        Args:
            node: Pow node holding the exponent in aux
            grad_output: Gradient from downstream operations
        """
        base = node.left_node
        exponent = node.aux

        grad = exponent * np.power(base.data, exponent - 1) * grad_output
        Function.accumulate(base, grad)

