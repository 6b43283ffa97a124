from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True)
class GraphConfig:
    """Configuration for a single computation graph.

    Attributes:
        width (int): Lane width W. 1 selects scalar mode, anything larger
            selects fixed-width vector mode.
        dtype (Any): Floating point dtype used for ``data`` and ``grad``.
        check_invariants (bool): Verify per-node structure while linearizing
            the graph for gradient evaluation.
    """

    width: int = 1
    dtype: Any = np.float64
    check_invariants: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.width, bool) or not isinstance(self.width, (int, np.integer)):
            raise TypeError(f"width must be an integer, got {type(self.width).__name__}")
        if self.width < 1:
            raise ValueError(f"width must be at least 1, got {self.width}")

        dtype = np.dtype(self.dtype)
        if not np.issubdtype(dtype, np.floating):
            raise TypeError(f"dtype must be a floating point type, got {dtype}")
        # Normalize so that equal configs compare equal
        object.__setattr__(self, "dtype", dtype)
        object.__setattr__(self, "width", int(self.width))
