"""
Lane variants describing the payload shape of every node in a graph.

A graph is either in scalar mode (every payload is a single number) or in
fixed-width vector mode (every payload is a lane of W numbers). The variant is
resolved once when the graph is created; all graph and gradient logic is shared
between the two and works elementwise on numpy arrays of the variant's shape.
"""

from abc import ABC, abstractmethod
from numbers import Real
from typing import Any, Tuple

import numpy as np
from numpy.typing import DTypeLike, NDArray

from .errors import ShapeMismatchError, UnsupportedOperandError


class Lanes(ABC):
    """Base class for the closed set of lane variants."""

    width: int

    @property
    @abstractmethod
    def shape(self) -> Tuple[int, ...]:
        """Shape of a payload array in this mode."""
        raise NotImplementedError

    def zeros(self, dtype: DTypeLike) -> NDArray[Any]:
        return np.zeros(self.shape, dtype=dtype)

    def ones(self, dtype: DTypeLike) -> NDArray[Any]:
        return np.ones(self.shape, dtype=dtype)

    def coerce(self, value: Any, dtype: DTypeLike) -> NDArray[Any]:
        """
        Converts a raw literal into a payload array of this lane shape.

        Real scalars are broadcast to every lane. Lists, tuples and numpy
        arrays must match the lane shape exactly.

        Raises:
            UnsupportedOperandError: If value is not a real number or array-like,
                or is too large for dtype
            ShapeMismatchError: If an array-like value has the wrong width
        """
        if isinstance(value, Real):
            try:
                return np.full(self.shape, value, dtype=dtype)
            except OverflowError as exc:
                raise UnsupportedOperandError(
                    f"Literal {value!r} is not representable as {np.dtype(dtype)}"
                ) from exc

        if isinstance(value, (list, tuple)):
            try:
                value = np.asarray(value)
            except ValueError as exc:
                raise ShapeMismatchError(f"Ragged lane literal: {exc}") from exc

        if not isinstance(value, np.ndarray):
            raise UnsupportedOperandError(
                f"Unsupported operand type {type(value).__name__}; expected a node, "
                f"a real scalar or a lane of width {self.width}"
            )

        if value.dtype.kind not in "biuf":
            raise UnsupportedOperandError(
                f"Lane literal must hold real numbers, got dtype {value.dtype}"
            )

        if value.shape == ():
            return np.full(self.shape, value, dtype=dtype)

        if value.shape != self.shape:
            raise ShapeMismatchError(
                f"Cannot use operand of shape {value.shape} in a graph of lane shape {self.shape}"
            )

        return value.astype(dtype, copy=True)

    def __eq__(self, other: Any) -> bool:
        return type(self) is type(other) and self.width == other.width

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.width))


class Scalar(Lanes):
    """Scalar mode: payloads are 0-d arrays."""

    width = 1

    @property
    def shape(self) -> Tuple[int, ...]:
        return ()

    def __repr__(self) -> str:
        return "Scalar()"


class FixedLane(Lanes):
    """Vector mode: payloads are 1-d arrays of exactly ``width`` elements."""

    def __init__(self, width: int):
        if width < 2:
            raise ValueError(f"FixedLane width must be at least 2, got {width}")
        self.width = width

    @property
    def shape(self) -> Tuple[int, ...]:
        return (self.width,)

    def __repr__(self) -> str:
        return f"FixedLane({self.width})"


def resolve_lanes(width: int) -> Lanes:
    """Returns the lane variant for a graph of the given width."""
    if width == 1:
        return Scalar()
    return FixedLane(width)
