import logging
from typing import Any, Dict, List, Optional, Set

from numpy.typing import NDArray

from .errors import GraphInvariantError
from .function import get_function, quiet_float_errors
from .node import Node, Op

logger = logging.getLogger(__name__)


class GradientEvaluator:
    """
    Engine computing reverse-mode gradients over a graph.

    The evaluator linearizes the part of the graph reachable from a root so
    that every node appears exactly once, then walks that sequence from the
    root toward the leaves. Each node propagates its gradient to its operands
    exactly once, after all of its consumers have already contributed to it,
    which makes shared (diamond) subgraphs receive the sum over every path.
    """

    def __init__(self) -> None:
        self._currently_computing_gradients = False

    def linearize(self, root: Node) -> List[Node]:
        """
        Returns every node reachable from root exactly once, in topological order.

        Operands are always appended to the arena before the nodes consuming
        them, so ascending arena index is a topological order; the traversal
        only has to find the reachable set.

        Args:
            root: Node to start the traversal from

        Returns:
            List of nodes, operands before consumers, root last

        Raises:
            GraphInvariantError: If the graph references forward or foreign nodes
        """
        graph = root.graph
        if root not in graph:
            raise GraphInvariantError(f"{root!r} is not registered in its graph")
        check_invariants = graph.config.check_invariants

        visited: Set[int] = set()
        stack = [root.index]
        while stack:
            index = stack.pop()
            if index in visited:
                continue
            visited.add(index)

            node = graph[index]
            if check_invariants:
                graph.check_node(node)

            # Right first so the left operand is popped next
            for operand in (node.right, node.left):
                if operand is None:
                    continue
                if not 0 <= operand < index:
                    raise GraphInvariantError(
                        f"Cycle detected in computation graph: node {index} "
                        f"references operand {operand}"
                    )
                if operand not in visited:
                    stack.append(operand)

        return [graph[index] for index in sorted(visited)]

    def backward(self, root: Node, gradient: Optional[Any] = None) -> None:
        """Executes the backward pass, leaving the results on each node's grad."""
        self.evaluate(root, gradient)

    def evaluate(self, root: Node, gradient: Optional[Any] = None) -> Dict[Node, NDArray[Any]]:
        """
        Computes the gradient of root with respect to every node it depends on.

        Gradients of every node in the graph are reset first, so evaluating the same
        graph twice gives the same result.

        Args:
            root: Output node to differentiate
            gradient: Optional seed for root's gradient, a real scalar or a lane
                literal. Defaults to ones.

        Returns:
            Mapping from each reachable node to a copy of its gradient

        Raises:
            RuntimeError: If called while another evaluation is in progress
        """
        if self._currently_computing_gradients:
            raise RuntimeError("Nested gradient computation detected")

        self._currently_computing_gradients = True
        try:
            graph = root.graph
            order = self.linearize(root)
            logger.debug(
                "Evaluating gradients of node %d over %d of %d nodes",
                root.index,
                len(order),
                len(graph),
            )

            for node in graph:
                node.zero_grad()
            if gradient is None:
                root.grad = graph.lanes.ones(graph.dtype)
            else:
                root.grad = graph.coerce(gradient)

            # Traverse nodes in reverse topological order
            with quiet_float_errors():
                for node in reversed(order):
                    if node.op is Op.NONE:
                        continue
                    get_function(node.op).backward(node, node.grad)

            return {node: node.grad.copy() for node in order}
        finally:
            self._currently_computing_gradients = False


# Global evaluator instance
_evaluator = GradientEvaluator()


def get_evaluator() -> GradientEvaluator:
    """Returns the global gradient evaluator instance."""
    return _evaluator


def evaluate_gradients(root: Node, gradient: Optional[Any] = None) -> Dict[Node, NDArray[Any]]:
    """Computes gradients of root with the global evaluator. See GradientEvaluator.evaluate."""
    return get_evaluator().evaluate(root, gradient)
