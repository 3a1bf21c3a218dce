"""
Data models for topiclab.

These dataclasses define the contract between the corpus builder, the LDA
sampler and the cross-validation harness.

Design Philosophy:
    - Document-term counts in -> theta/phi distributions out
    - Counts are sparse (scipy CSR) and read-only once built
    - Configuration is validated up front, before any sampling begins
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse

from topiclab.src.exceptions import InvalidParameterError


@dataclass
class DocumentTermMatrix:
    """
    Sparse document x term count table with its vocabulary.

    Attributes:
        counts: CSR matrix of shape (n_docs, n_terms) with integer counts
        vocabulary: Term strings; a term's position is its stable column index
        doc_ids: Optional document identifiers (same order as rows)
    """

    counts: sparse.csr_matrix
    vocabulary: Tuple[str, ...]
    doc_ids: Optional[List[str]] = None

    def __post_init__(self):
        if not sparse.issparse(self.counts):
            self.counts = sparse.csr_matrix(np.asarray(self.counts))
        else:
            self.counts = sparse.csr_matrix(self.counts)

        self.vocabulary = tuple(self.vocabulary)

        if self.counts.ndim != 2:
            raise InvalidParameterError("Document-term matrix must be two-dimensional")
        if len(self.vocabulary) != self.counts.shape[1]:
            raise InvalidParameterError(
                f"Vocabulary size ({len(self.vocabulary)}) does not match "
                f"matrix columns ({self.counts.shape[1]})"
            )
        if self.doc_ids is not None:
            self.doc_ids = [str(d) for d in self.doc_ids]
            if len(self.doc_ids) != self.counts.shape[0]:
                raise InvalidParameterError(
                    f"Got {len(self.doc_ids)} doc_ids for {self.counts.shape[0]} documents"
                )

    @classmethod
    def from_dense(
        cls,
        matrix,
        vocabulary: Optional[Sequence[str]] = None,
        doc_ids: Optional[Sequence[str]] = None,
    ) -> "DocumentTermMatrix":
        """Build from a dense array-like; vocabulary defaults to term_0..term_{V-1}."""
        array = np.asarray(matrix)
        if vocabulary is None:
            n_terms = array.shape[1] if array.ndim == 2 else 0
            vocabulary = [f"term_{i}" for i in range(n_terms)]
        return cls(
            counts=sparse.csr_matrix(array),
            vocabulary=tuple(vocabulary),
            doc_ids=list(doc_ids) if doc_ids is not None else None,
        )

    @property
    def n_docs(self) -> int:
        return self.counts.shape[0]

    @property
    def n_terms(self) -> int:
        return self.counts.shape[1]

    @property
    def doc_lengths(self) -> np.ndarray:
        """Token count per document (row sums)."""
        return np.asarray(self.counts.sum(axis=1)).ravel().astype(np.int64)

    @property
    def n_tokens(self) -> int:
        return int(self.counts.sum())

    def subset(self, indices: Sequence[int]) -> "DocumentTermMatrix":
        """
        Select a subset of documents, keeping the full vocabulary.

        Columns are never dropped so that term indices stay comparable
        between a training subset and its held-out complement.
        """
        indices = np.asarray(indices, dtype=np.int64)
        doc_ids = None
        if self.doc_ids is not None:
            doc_ids = [self.doc_ids[i] for i in indices]
        return DocumentTermMatrix(
            counts=self.counts[indices],
            vocabulary=self.vocabulary,
            doc_ids=doc_ids,
        )


def _is_integer(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool)


@dataclass
class LDAConfig:
    """
    Hyperparameters and iteration budget for one LDA fit.

    Attributes:
        k: Number of topics
        alpha: Symmetric Dirichlet prior on document-topic proportions
        beta: Symmetric Dirichlet prior on topic-term distributions
        burnin: Sweeps discarded before the retained iterations
        iterations: Sweeps run after burn-in
        seed: Seed for the numpy Generator driving every random draw
        keep: Record the joint log-likelihood every `keep` sweeps (0 = never)
        heldout_iterations: Sweeps used to estimate theta for held-out documents
        n_top_terms: Number of keywords reported per topic
    """

    k: int = 10
    alpha: float = 0.1
    beta: float = 0.01
    burnin: int = 200
    iterations: int = 300
    seed: Optional[int] = 42
    keep: int = 50
    heldout_iterations: int = 50
    n_top_terms: int = 10

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "LDAConfig":
        """Build from a config dict, ignoring unknown keys."""
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in params.items() if key in known})

    def validate(self) -> None:
        """
        Check every parameter before any sampling happens.

        Raises:
            InvalidParameterError: If any parameter is missing, of the wrong
                type or out of range
        """
        if not _is_integer(self.k) or self.k < 1:
            raise InvalidParameterError(f"k must be an integer >= 1, got {self.k!r}")
        for name in ("alpha", "beta"):
            value = getattr(self, name)
            if not _is_real(value) or not np.isfinite(value) or value <= 0:
                raise InvalidParameterError(f"{name} must be a finite number > 0, got {value!r}")
        minimums = {
            "burnin": 0,
            "iterations": 1,
            "keep": 0,
            "heldout_iterations": 1,
            "n_top_terms": 1,
        }
        for name, minimum in minimums.items():
            value = getattr(self, name)
            if not _is_integer(value) or value < minimum:
                raise InvalidParameterError(
                    f"{name} must be an integer >= {minimum}, got {value!r}"
                )
        if self.seed is not None and not _is_integer(self.seed):
            raise InvalidParameterError(f"seed must be an integer or None, got {self.seed!r}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TopicModelResult:
    """
    Standardized output of a topic model fit.

    Required Attributes:
        theta: Per-document topic proportions (n_docs, n_topics), rows sum to 1
        phi: Per-topic term distributions (n_topics, n_terms), rows sum to 1
        n_topics: Number of topics (K)
        topic_assignments: Most probable topic per document (argmax of theta)
        topic_keywords: topic_id -> top terms by phi

    Optional Attributes:
        topic_sizes: topic_id -> number of tokens assigned in the final state
        log_likelihoods: (iteration, log p(w|z)) pairs recorded during sampling
        state: Final topic assignment state (SamplerState)
        metadata: Model config and run info for auditing
    """

    theta: np.ndarray
    phi: np.ndarray
    n_topics: int
    topic_assignments: np.ndarray
    topic_keywords: Dict[int, List[str]]

    topic_sizes: Optional[Dict[int, int]] = None
    log_likelihoods: List[Tuple[int, float]] = field(default_factory=list)
    state: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FoldScore:
    """
    Held-out score of one cross-validation fold.

    Attributes:
        k: Topic count the fold was trained with
        fold: Fold index (0-based)
        perplexity: exp(-log_likelihood / n_tokens)
        log_likelihood: Total held-out log-likelihood of the fold
        n_tokens: Held-out token count
        n_train_docs: Documents used for training
        n_test_docs: Documents scored
    """

    k: int
    fold: int
    perplexity: float
    log_likelihood: float
    n_tokens: int
    n_train_docs: int
    n_test_docs: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
