from typing import Any

from numpy.typing import NDArray

from ..core.context import Context
from ..core.function import Function
from ..core.node import Node, Op, Operand


class Add(Function):
    """
    Elementwise addition.

    Forward: f(a, b) = a + b
    Backward: df/da = df/db = 1, so both operands receive the gradient unchanged.
    """

    op = Op.ADD

    @staticmethod
    def forward(ctx: Context, a: Node, b: Operand) -> NDArray[Any]:
        b = a.graph.as_node(b)
        ctx.save_for_backward(a, b)
        return a.data + b.data

    @staticmethod
    def backward(node: Node, grad_output: NDArray[Any]) -> None:
        a, b = node.left_node, node.right_node
        Function.accumulate(a, grad_output)
        Function.accumulate(b, grad_output)


class Multiply(Function):
    """
    Elementwise multiplication.

    Forward: f(a, b) = a * b
    Backward: df/da = b, df/db = a
    """

    op = Op.MUL

    @staticmethod
    def forward(ctx: Context, a: Node, b: Operand) -> NDArray[Any]:
        b = a.graph.as_node(b)
        ctx.save_for_backward(a, b)
        return a.data * b.data

    @staticmethod
    def backward(node: Node, grad_output: NDArray[Any]) -> None:
        a, b = node.left_node, node.right_node
        # Operand data is read-only, so these are the pre-operation values
        Function.accumulate(a, b.data * grad_output)
        Function.accumulate(b, a.data * grad_output)
