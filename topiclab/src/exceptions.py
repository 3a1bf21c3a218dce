"""
Exception hierarchy for topic model estimation and cross-validation.

All parameter validation errors are raised before any sampling starts.
Numeric failures during sampling abort the current fit and carry enough
context (document index, token position) to reproduce the failure.
"""

from typing import Optional, Sequence


class TopicModelError(Exception):
    """Base exception for topiclab errors."""
    pass


class InvalidParameterError(TopicModelError, ValueError):
    """Raised for bad hyperparameters or a malformed document-term matrix."""
    pass


class EmptyDocumentError(TopicModelError, ValueError):
    """Raised when a document has zero tokens after preprocessing."""

    def __init__(self, doc_indices: Sequence[int], doc_ids: Optional[Sequence[str]] = None):
        self.doc_indices = list(doc_indices)
        self.doc_ids = list(doc_ids) if doc_ids is not None else None

        shown = self.doc_ids if self.doc_ids is not None else self.doc_indices
        preview = ", ".join(str(d) for d in shown[:5])
        if len(shown) > 5:
            preview += ", ..."
        super().__init__(
            f"{len(self.doc_indices)} document(s) have zero tokens: {preview}. "
            "Exclude empty documents before fitting (see drop_empty_documents)."
        )

    def __reduce__(self):
        # Rebuild from the constructor arguments when crossing a process boundary
        return (type(self), (self.doc_indices, self.doc_ids))


class InvalidFoldCountError(TopicModelError, ValueError):
    """Raised when the fold count is < 2 or exceeds the number of documents."""
    pass


class InternalError(TopicModelError):
    """Raised when the sampler reaches a state that should be impossible."""
    pass


class NumericInstabilityError(InternalError):
    """Raised when a conditional topic distribution is non-finite."""

    def __init__(self, message: str, doc_index: int, token_position: int):
        self.message = message
        self.doc_index = doc_index
        self.token_position = token_position
        super().__init__(
            f"{message} (document {doc_index}, token position {token_position})"
        )

    def __reduce__(self):
        return (type(self), (self.message, self.doc_index, self.token_position))
