from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..core.context import Context
from ..core.function import Function
from ..core.node import Node, Op


class Relu(Function):
    """
    Rectified linear unit.

    Forward: f(x) = max(x, 0)
    Backward: f'(x) = 1 if x > 0 else 0

    The backward pass tests the output data, which is positive exactly where
    the input is, so no extra state is recorded.
    """

    op = Op.RELU

    @staticmethod
    def forward(ctx: Context, x: Node) -> NDArray[Any]:
        ctx.save_for_backward(x)
        return np.maximum(x.data, 0)

    @staticmethod
    def backward(node: Node, grad_output: NDArray[Any]) -> None:
        Function.accumulate(node.left_node, np.where(node.data > 0, grad_output, 0))
