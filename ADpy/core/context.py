from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Context:
    """
    Context class for recording the provenance of a node during its forward pass.

    A Function's forward computation saves the operand nodes it consumed and any
    non-differentiable auxiliary value (such as a constant exponent). Function.apply
    then turns the recorded information into the new node's ``left``, ``right``
    and ``aux`` fields.

    Attributes:
        _saved_operands: Operand nodes in (left, right) order
        _arguments: Additional arguments recorded for the backward pass
    """

    _saved_operands: List[Any] = field(default_factory=list)
    _arguments: Dict[str, Any] = field(default_factory=dict)

    def save_for_backward(self, *operands: Any) -> None:
        """
        Saves the operand nodes the backward pass will propagate into.

        Args:
            *operands: One operand for unary operations, two for binary ones

        Raises:
            ValueError: If more than two operands are given
        """
        if len(operands) > 2:
            raise ValueError(f"An operation takes at most two operands, got {len(operands)}")
        self._saved_operands = list(operands)

    def save_arguments(self, **kwargs: Any) -> None:
        """
        Saves additional arguments that will be needed for the backward pass.

        Args:
            **kwargs: Keyword arguments to save
        """
        self._arguments.update(kwargs)

    @property
    def saved_arguments(self) -> Dict[str, Any]:
        """Returns the saved arguments."""
        return self._arguments.copy()

    @property
    def left(self) -> Optional[Any]:
        return self._saved_operands[0] if self._saved_operands else None

    @property
    def right(self) -> Optional[Any]:
        return self._saved_operands[1] if len(self._saved_operands) > 1 else None
