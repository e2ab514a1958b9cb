"""Exceptions raised by the retrieval pipeline.

Store failures have their own hierarchy in ``localqa.store.base`` and are
passed through unchanged.
"""


class RetrievalError(Exception):
    """Base exception for chunking, encoding, and search."""
    pass


class EmptyInputError(RetrievalError):
    """No usable text or tokens to chunk, build a vocabulary from, or search with."""
    pass


class NotInitializedError(RetrievalError):
    """Encoding or search requested before the encoder was initialized."""
    pass


class DimensionMismatchError(RetrievalError):
    """Two vectors of different lengths were compared in strict mode."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vector dimensions differ: {left} != {right}")
        self.left = left
        self.right = right
