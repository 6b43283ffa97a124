from abc import ABC, abstractmethod
from typing import Any, Dict, Type

import numpy as np
from numpy.typing import NDArray

from .context import Context
from .errors import UnsupportedOperandError
from .node import Node, Op

_REGISTRY: Dict[Op, Type["Function"]] = {}


def quiet_float_errors() -> np.errstate:
    """
    Returns a context in which numpy produces inf and NaN without warnings.

    Zero divisors and overflows are not engine errors; their IEEE-754
    results flow through both passes unchanged and are left to the caller.
    """
    return np.errstate(divide="ignore", invalid="ignore", over="ignore", under="ignore")


class Function(ABC):
    """
    Base class for all graph operations.

    Each operation implements a forward pass, which computes the result data and
    records provenance on a Context, and a backward pass, which applies the
    operation's chain-rule step to a node produced by it. Subclasses declare the
    Op tag they implement and are registered so the gradient evaluator can
    dispatch on ``node.op``.
    """

    op: Op

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # The first implementation of a tag wins
        if "op" in cls.__dict__:
            _REGISTRY.setdefault(cls.op, cls)

    @staticmethod
    @abstractmethod
    def forward(ctx: Context, *args: Any) -> NDArray[Any]:
        """
        Performs the forward computation.

        Args:
            ctx: Context object for recording operands and auxiliary values
            *args: The node the operation is applied to, followed by its other arguments

        Returns:
            The result data, an array of the graph's lane shape
        """
        raise NotImplementedError

    @staticmethod
    @abstractmethod
    def backward(node: Node, grad_output: NDArray[Any]) -> None:
        """
        Propagates the gradient of a node produced by this operation to its operands.

        Args:
            node: Node produced by this operation
            grad_output: Fully accumulated gradient of the root with respect to node
        """
        raise NotImplementedError

    @classmethod
    def apply(cls, *args: Any) -> Node:
        """
        Applies the function to the given inputs.

        This method:
        1. Creates a Context object for recording provenance
        2. Runs the forward pass
        3. Appends the result node to the graph of the first argument
        4. Returns the new node
        """
        if not args or not isinstance(args[0], Node):
            raise UnsupportedOperandError(f"{cls.__name__} must be applied to a Node")
        graph = args[0].graph

        ctx = Context()
        with quiet_float_errors():
            data = cls.forward(ctx, *args)

        return graph.record(
            data,
            op=cls.op,
            left=ctx.left,
            right=ctx.right,
            aux=ctx.saved_arguments.get("aux"),
        )

    @staticmethod
    def accumulate(node: Node, contribution: NDArray[Any]) -> None:
        """Adds a gradient contribution to a node, never overwriting earlier ones."""
        node.grad += contribution.astype(node.grad.dtype, copy=False)


def get_function(op: Op) -> Type[Function]:
    """
    Returns the Function implementing an op tag.

    Raises:
        KeyError: If no Function is registered for op
    """
    return _REGISTRY[op]
