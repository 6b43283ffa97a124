class ShapeMismatchError(ValueError):
    """Raised when an operand's lane width does not match the graph's width."""


class UnsupportedOperandError(TypeError):
    """Raised when an operand is neither a node, a real scalar nor a lane literal."""


class GraphInvariantError(RuntimeError):
    """
    Raised when the structure of a graph violates its construction invariants.

    This always indicates a bug in whatever produced the nodes (or deliberate
    tampering with the arena), never a recoverable runtime condition.
    """
