from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List

import numpy as np
from numpy.typing import DTypeLike, NDArray

if TYPE_CHECKING:
    from ..core.node import Node


@dataclass(frozen=True)
class LaneHandle:
    """Location of one lane inside a Layout's buffer.

    Attributes:
        offset (int): Index of the lane's first element in the buffer
        width (int): Number of elements in the lane
    """

    offset: int
    width: int

    @property
    def stop(self) -> int:
        return self.offset + self.width


class Layout:
    """
    Offset allocator handing out consecutive regions of a single buffer.

    Each call to allocate() reserves the next ``width`` elements; the regions
    never overlap and are never freed. The graph engine only ever sees the
    resulting handles.
    """

    def __init__(self) -> None:
        self.total_size = 0
        self._handles: List[LaneHandle] = []

    def __len__(self) -> int:
        return len(self._handles)

    @property
    def handles(self) -> List[LaneHandle]:
        return list(self._handles)

    def allocate(self, width: int) -> LaneHandle:
        """
        Reserves a region for a lane of the given width.

        Raises:
            ValueError: If width is not positive
        """
        if width < 1:
            raise ValueError(f"Cannot allocate a lane of width {width}")
        handle = LaneHandle(self.total_size, width)
        self.total_size += width
        self._handles.append(handle)
        return handle

    def buffer(self, dtype: DTypeLike = np.float64) -> NDArray[Any]:
        """Returns a zeroed buffer large enough for every allocated lane."""
        return np.zeros(self.total_size, dtype=dtype)

    def view(self, buffer: NDArray[Any], handle: LaneHandle) -> NDArray[Any]:
        """Returns the slice of buffer holding the lane at handle."""
        if handle.stop > buffer.shape[0]:
            raise ValueError(
                f"Handle {handle} lies outside a buffer of size {buffer.shape[0]}"
            )
        return buffer[handle.offset:handle.stop]

    def pack(self, nodes: Iterable["Node"], field: str = "data") -> NDArray[Any]:
        """
        Copies the data or gradients of nodes into a fresh buffer.

        Args:
            nodes: Nodes carrying a storage handle from this layout
            field: Either "data" or "grad"

        Returns:
            Buffer with each node's values at its handle's offset

        Raises:
            ValueError: If a node has no storage handle or field is unknown
        """
        if field not in ("data", "grad"):
            raise ValueError(f"Can only pack 'data' or 'grad', got {field!r}")

        nodes = list(nodes)
        dtype = np.result_type(*(node.dtype for node in nodes)) if nodes else np.float64
        buffer = self.buffer(dtype)
        for node in nodes:
            if node.storage is None:
                raise ValueError(f"{node!r} has no storage handle")
            self.view(buffer, node.storage)[...] = getattr(node, field)
        return buffer
