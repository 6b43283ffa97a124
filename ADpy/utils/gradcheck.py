from typing import Any, Callable, List, Sequence

import numpy as np
from numpy.typing import NDArray

from ..core.graph import Graph
from ..core.node import Node


def _evaluate(build: Callable[..., Node], values: Sequence[Any], width: int) -> NDArray[Any]:
    graph = Graph(width=width)
    leaves = [graph.leaf(value) for value in values]
    return build(*leaves).data


def numerical_gradient(
    build: Callable[..., Node],
    values: Sequence[Any],
    width: int = 1,
    epsilon: float = 1e-6,
) -> List[NDArray[Any]]:
    """
    Estimates the gradient of a graph with central finite differences.

    Args:
        build: Callable taking one leaf per value and returning the output node
        values: Leaf literals, each a real scalar or a lane of ``width`` numbers
        width: Lane width of the graphs built
        epsilon: Perturbation applied to each lane element in turn

    Returns:
        One array per value holding d(sum of output lanes)/d(leaf), which is what
        the evaluator computes with its default all-ones seed
    """
    graph = Graph(width=width)
    base = [graph.coerce(value) for value in values]
    grads = []

    for idx, inp in enumerate(base):
        grad = np.zeros_like(inp)
        for ix in np.ndindex(inp.shape):
            pos_inputs = [b.copy() for b in base]
            pos_inputs[idx][ix] += epsilon
            neg_inputs = [b.copy() for b in base]
            neg_inputs[idx][ix] -= epsilon

            pos_output = _evaluate(build, pos_inputs, width)
            neg_output = _evaluate(build, neg_inputs, width)
            grad[ix] = np.sum(pos_output - neg_output) / (2 * epsilon)
        grads.append(grad)

    return grads


def check_gradients(
    build: Callable[..., Node],
    values: Sequence[Any],
    width: int = 1,
    epsilon: float = 1e-6,
    tolerance: float = 1e-5,
) -> bool:
    """
    Verifies evaluator gradients against numerical gradients.

    This helper compares the analytically computed gradients of every leaf
    with central differences elementwise.

    Returns:
        True if gradients match within tolerance, False otherwise
    """
    graph = Graph(width=width)
    leaves = [graph.leaf(value) for value in values]
    build(*leaves).backward()
    analytical_grads = [leaf.grad for leaf in leaves]

    numerical_grads = numerical_gradient(build, values, width=width, epsilon=epsilon)

    for analytical, numerical in zip(analytical_grads, numerical_grads):
        if not np.allclose(analytical, numerical, rtol=tolerance, atol=tolerance):
            return False

    return True
