import logging
from typing import Any, Iterator, List, Optional

import numpy as np
from numpy.typing import DTypeLike, NDArray

from .config import GraphConfig
from .errors import GraphInvariantError, ShapeMismatchError, UnsupportedOperandError
from .lanes import Lanes, resolve_lanes
from .node import Node, Op

logger = logging.getLogger(__name__)


class Graph:
    """
    Append-only arena holding every node of one computation.

    The graph fixes the lane width and dtype shared by all of its nodes. Nodes
    are appended by leaf() and by Function.apply and are never removed, so a
    node's index is stable for the lifetime of the graph and operands always
    have smaller indices than the nodes consuming them.

    Example:
        >>> g = Graph()
        >>> a, b = g.leaf(2.0), g.leaf(3.0)
        >>> e = (a * b + b) ** 2
        >>> e.backward()
        >>> float(a.grad), float(b.grad)
        (54.0, 54.0)
    """

    def __init__(
        self,
        width: int = 1,
        dtype: DTypeLike = np.float64,
        *,
        check_invariants: bool = True,
        config: Optional[GraphConfig] = None,
    ):
        self.config = config or GraphConfig(
            width=width, dtype=dtype, check_invariants=check_invariants
        )
        self.lanes: Lanes = resolve_lanes(self.config.width)
        self._nodes: List[Node] = []
        logger.debug("Created graph with %r lanes, dtype %s", self.lanes, self.dtype)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def dtype(self) -> np.dtype:
        return self.config.dtype

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, node: Any) -> bool:
        return (
            isinstance(node, Node)
            and node.graph is self
            and 0 <= node.index < len(self._nodes)
            and self._nodes[node.index] is node
        )

    def __repr__(self) -> str:
        return f"Graph(lanes={self.lanes!r}, dtype={self.dtype}, nodes={len(self._nodes)})"

    def coerce(self, value: Any) -> NDArray[Any]:
        """Converts a raw literal into a payload array for this graph."""
        return self.lanes.coerce(value, self.dtype)

    def leaf(self, value: Any, storage: Optional[Any] = None) -> Node:
        """
        Wraps a literal into a new leaf node.

        Args:
            value: Real scalar (broadcast to every lane) or a lane literal
            storage: Optional LaneHandle locating the value in a packed buffer

        Returns:
            The new leaf node

        Raises:
            ShapeMismatchError: If the literal or the storage handle has the wrong width
            UnsupportedOperandError: If value is not a supported literal
        """
        if isinstance(value, Node):
            raise UnsupportedOperandError("leaf() expects a literal, got a Node")
        if storage is not None and storage.width != self.width:
            raise ShapeMismatchError(
                f"Storage handle of width {storage.width} cannot hold a lane of width {self.width}"
            )
        node = self.record(self.coerce(value))
        node.storage = storage
        return node

    def as_node(self, value: Any) -> Node:
        """Returns value if it is a node of this graph, otherwise wraps it as a leaf."""
        if isinstance(value, Node):
            if value not in self:
                raise UnsupportedOperandError("Cannot combine nodes from different graphs")
            return value
        return self.leaf(value)

    def record(
        self,
        data: NDArray[Any],
        op: Op = Op.NONE,
        left: Optional[Node] = None,
        right: Optional[Node] = None,
        aux: Optional[NDArray[Any]] = None,
    ) -> Node:
        """Appends a new node to the arena and returns it."""
        # numpy reduces 0-d results to scalars; nodes always hold arrays they own
        data = np.array(data, dtype=self.dtype)
        if data.shape != self.lanes.shape:
            raise ShapeMismatchError(
                f"Result of shape {data.shape} does not fit lane shape {self.lanes.shape}"
            )
        if aux is not None:
            aux = np.array(aux, dtype=self.dtype)

        node = Node(
            self,
            len(self._nodes),
            data,
            op=op,
            left=None if left is None else left.index,
            right=None if right is None else right.index,
            aux=aux,
        )
        self._nodes.append(node)
        return node

    def check_node(self, node: Node) -> None:
        """
        Verifies the structural invariants of a single node.

        Raises:
            GraphInvariantError: If the node violates any construction invariant
        """
        if node not in self:
            raise GraphInvariantError(f"{node!r} does not belong to this graph")

        for operand in (node.left, node.right):
            if operand is not None and not 0 <= operand < node.index:
                raise GraphInvariantError(
                    f"Cycle detected in computation graph: node {node.index} "
                    f"references operand {operand}"
                )

        if node.op is Op.NONE:
            if node.left is not None or node.right is not None:
                raise GraphInvariantError(f"Leaf node {node.index} has operands")
        elif node.op in (Op.ADD, Op.MUL):
            if node.left is None or node.right is None:
                raise GraphInvariantError(f"Binary node {node.index} is missing an operand")
        else:
            if node.left is None or node.right is not None:
                raise GraphInvariantError(f"Unary node {node.index} must have exactly one operand")
            if node.op is Op.POW and node.aux is None:
                raise GraphInvariantError(f"Pow node {node.index} has no exponent")

        if node.data.shape != self.lanes.shape:
            raise GraphInvariantError(
                f"Node {node.index} has shape {node.data.shape}, expected {self.lanes.shape}"
            )

    def validate(self, root: Optional[Node] = None) -> List[str]:
        """
        Validates the graph and reports conditions worth the caller's attention.

        Structural violations raise. Non-finite values are not engine errors,
        so they are only reported, as are nodes that do not influence ``root``.

        Args:
            root: Optional output node used to find unconnected nodes

        Returns:
            List of warning messages, empty if nothing was found

        Raises:
            GraphInvariantError: If any node violates a construction invariant
        """
        warnings: List[str] = []

        for node in self._nodes:
            self.check_node(node)

        if root is not None:
            from .autograd import get_evaluator

            reachable = {n.index for n in get_evaluator().linearize(root)}
            unconnected = len(self._nodes) - len(reachable)
            if unconnected:
                warnings.append(f"Found {unconnected} nodes not connected to the output")

        non_finite_data = [n.index for n in self._nodes if not np.all(np.isfinite(n.data))]
        if non_finite_data:
            warnings.append(f"Found non-finite data in nodes {non_finite_data}")

        non_finite_grad = [n.index for n in self._nodes if not np.all(np.isfinite(n.grad))]
        if non_finite_grad:
            warnings.append(f"Found non-finite gradients in nodes {non_finite_grad}")

        for message in warnings:
            logger.warning(message)

        return warnings
