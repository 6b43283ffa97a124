from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..storage.layout import LaneHandle
    from .graph import Graph

Operand = Union["Node", float, int, list, tuple, NDArray[Any]]


class Op(Enum):
    """Tags identifying how a node's data was produced."""

    NONE = "none"
    ADD = "add"
    MUL = "mul"
    POW = "pow"
    RELU = "relu"


class Node:
    """
    A value in a computation graph.

    Nodes are created by a Graph (leaves) or by Function.apply (operation
    results) and live in the graph's arena. Operands are referenced by their
    arena index rather than by object, so ``left`` and ``right`` are integers.

    Attributes:
        graph: The graph owning this node
        index: Stable position of the node in the graph's arena
        data: Read-only forward value, an array of the graph's lane shape
        grad: Gradient of the last evaluated root with respect to this node
        op: Operation that produced ``data``
        left: Arena index of the first operand, or None for leaves
        right: Arena index of the second operand, or None for leaves and unary ops
        aux: Constant exponent for Pow nodes, None otherwise
        storage: Optional buffer handle from a Layout, opaque to the engine
    """

    # Make numpy defer to the reflected operators below
    __array_ufunc__ = None

    def __init__(
        self,
        graph: "Graph",
        index: int,
        data: NDArray[Any],
        op: Op = Op.NONE,
        left: Optional[int] = None,
        right: Optional[int] = None,
        aux: Optional[NDArray[Any]] = None,
        storage: Optional["LaneHandle"] = None,
    ):
        data.flags.writeable = False
        if aux is not None:
            aux.flags.writeable = False

        self.graph = graph
        self.index = index
        self.data = data
        self.grad: NDArray[Any] = graph.lanes.zeros(graph.dtype)
        self.op = op
        self.left = left
        self.right = right
        self.aux = aux
        self.storage = storage

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def is_leaf(self) -> bool:
        return self.op is Op.NONE

    @property
    def left_node(self) -> Optional["Node"]:
        """Returns the first operand node, if any."""
        return None if self.left is None else self.graph[self.left]

    @property
    def right_node(self) -> Optional["Node"]:
        """Returns the second operand node, if any."""
        return None if self.right is None else self.graph[self.right]

    @property
    def operands(self) -> Tuple["Node", ...]:
        return tuple(self.graph[i] for i in (self.left, self.right) if i is not None)

    def item(self) -> float:
        """Returns the data of a scalar-mode node as a Python float."""
        return float(self.data)

    def zero_grad(self) -> None:
        """Zeros out the gradient."""
        self.grad = self.graph.lanes.zeros(self.graph.dtype)

    def backward(self, gradient: Optional[Any] = None) -> None:
        """
        Computes the gradient of this node with respect to every ancestor.

        Args:
            gradient: Optional seed for this node's gradient. Defaults to ones.
        """
        from .autograd import get_evaluator

        get_evaluator().backward(self, gradient)

    def __repr__(self) -> str:
        return f"Node(index={self.index}, data={self.data}, op={self.op.name})"

    # Graph-building operations, connected to Function implementations
    def add(self, other: Operand) -> "Node":
        from ..ops.basic import Add

        return Add.apply(self, other)

    def mul(self, other: Operand) -> "Node":
        from ..ops.basic import Multiply

        return Multiply.apply(self, other)

    def pow(self, exponent: Operand) -> "Node":
        """Returns the node raised to a constant (possibly lane-shaped) exponent."""
        from ..ops.power import Power

        return Power.apply(self, exponent)

    def relu(self) -> "Node":
        from ..ops.elementwise import Relu

        return Relu.apply(self)

    def neg(self) -> "Node":
        return self.mul(self.graph.leaf(-1))

    def sub(self, other: Operand) -> "Node":
        """Returns self - other, recorded as self + (other * -1)."""
        return self.add(self.graph.as_node(other).neg())

    def div(self, other: Operand) -> "Node":
        """Returns self / other, recorded as self * other ** -1."""
        return self.mul(self.graph.as_node(other).pow(-1))

    def __add__(self, other: Operand) -> "Node":
        return self.add(other)

    def __radd__(self, other: Operand) -> "Node":
        return self.graph.as_node(other).add(self)

    def __mul__(self, other: Operand) -> "Node":
        return self.mul(other)

    def __rmul__(self, other: Operand) -> "Node":
        return self.graph.as_node(other).mul(self)

    def __sub__(self, other: Operand) -> "Node":
        return self.sub(other)

    def __rsub__(self, other: Operand) -> "Node":
        return self.graph.as_node(other).sub(self)

    def __truediv__(self, other: Operand) -> "Node":
        return self.div(other)

    def __rtruediv__(self, other: Operand) -> "Node":
        return self.graph.as_node(other).div(self)

    def __pow__(self, exponent: Operand) -> "Node":
        return self.pow(exponent)

    def __neg__(self) -> "Node":
        return self.neg()
