"""
LDATopicModel - Latent Dirichlet Allocation by collapsed Gibbs sampling.

Design:
    - Document-term counts in -> theta (doc x topic) and phi (topic x term) out
    - One SamplerState per fit, owned by the caller; no module-level state
    - One seeded numpy Generator threaded through every random draw

Sampling:
    Tokens are visited in a fixed order (documents ascending, then term index
    ascending, each term repeated by its count). For each token the current
    assignment is removed from the three count matrices, the conditional

        p(z = k | rest) ∝ (n_dk + alpha) * (n_kw + beta) / (n_k + V * beta)

    is evaluated for every topic, a new topic is drawn by inverse CDF, and the
    assignment is added back.

Convergence policy:
    `burnin` sweeps are run and discarded, then `iterations` more sweeps.
    Theta and phi are computed from the counts of the final sweep only.

Held-out scoring:
    Held-out documents get their own theta from a short Gibbs pass with phi
    fixed, then log p(w_d) = sum_w n_dw * log(sum_k theta_dk * phi_kw).
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.special import gammaln

from topiclab.src.exceptions import (
    EmptyDocumentError,
    InternalError,
    InvalidParameterError,
    NumericInstabilityError,
)
from topiclab.src.models import DocumentTermMatrix, LDAConfig, TopicModelResult

logger = logging.getLogger(__name__)

IterationCallback = Callable[[int, "SamplerState"], None]


def validate_dtm(dtm: DocumentTermMatrix) -> None:
    """
    Check that a document-term matrix can be sampled.

    Raises:
        InvalidParameterError: Zero rows/columns, negative or fractional counts
        EmptyDocumentError: Any document with zero tokens
    """
    if dtm.n_docs == 0 or dtm.n_terms == 0:
        raise InvalidParameterError(
            f"Document-term matrix must have at least one row and column, "
            f"got shape {dtm.counts.shape}"
        )

    data = dtm.counts.data
    if data.size:
        if not np.all(np.isfinite(data)):
            raise InvalidParameterError("Document-term matrix contains non-finite counts")
        if np.any(data < 0):
            raise InvalidParameterError("Document-term matrix contains negative counts")
        if np.any(np.mod(data, 1) != 0):
            raise InvalidParameterError("Document-term matrix contains non-integer counts")

    empty = np.flatnonzero(dtm.doc_lengths == 0)
    if empty.size:
        doc_ids = [dtm.doc_ids[i] for i in empty] if dtm.doc_ids is not None else None
        raise EmptyDocumentError(empty.tolist(), doc_ids)


def expand_tokens(dtm: DocumentTermMatrix) -> Tuple[np.ndarray, np.ndarray]:
    """
    Turn counts into one (document, term) pair per token occurrence.

    Returns:
        (doc_index, term_index) arrays in traversal order
    """
    counts = dtm.counts.astype(np.int64)  # astype copies, safe to sort in place
    counts.sum_duplicates()
    counts.sort_indices()

    rows = np.repeat(np.arange(counts.shape[0], dtype=np.int64), np.diff(counts.indptr))
    doc_index = np.repeat(rows, counts.data)
    term_index = np.repeat(counts.indices.astype(np.int64), counts.data)
    return doc_index, term_index


class SamplerState:
    """
    Topic assignment of every token plus the three derived count matrices.

    doc_topic, topic_term and topic_totals are exact aggregates of `topics`;
    unassign() and assign() keep all three in step for a single token.
    """

    def __init__(
        self,
        doc_index: np.ndarray,
        term_index: np.ndarray,
        topics: np.ndarray,
        n_docs: int,
        n_terms: int,
        n_topics: int,
    ):
        self.doc_index = doc_index
        self.term_index = term_index
        self.topics = np.asarray(topics, dtype=np.int64)
        self.n_docs = n_docs
        self.n_terms = n_terms
        self.n_topics = n_topics

        self.doc_lengths = np.bincount(doc_index, minlength=n_docs)
        # first token of each document, used to report token positions
        self.doc_offsets = np.concatenate(([0], np.cumsum(self.doc_lengths)[:-1]))

        self.doc_topic, self.topic_term, self.topic_totals = self._aggregate()

    @classmethod
    def initialize(
        cls,
        dtm: DocumentTermMatrix,
        n_topics: int,
        rng: np.random.Generator,
    ) -> "SamplerState":
        """Assign every token a topic drawn uniformly from [0, n_topics)."""
        doc_index, term_index = expand_tokens(dtm)
        topics = rng.integers(0, n_topics, size=doc_index.size)
        return cls(doc_index, term_index, topics, dtm.n_docs, dtm.n_terms, n_topics)

    @property
    def n_tokens(self) -> int:
        return int(self.topics.size)

    def _aggregate(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        doc_topic = np.zeros((self.n_docs, self.n_topics), dtype=np.int64)
        np.add.at(doc_topic, (self.doc_index, self.topics), 1)

        topic_term = np.zeros((self.n_topics, self.n_terms), dtype=np.int64)
        np.add.at(topic_term, (self.topics, self.term_index), 1)

        topic_totals = np.bincount(self.topics, minlength=self.n_topics).astype(np.int64)
        return doc_topic, topic_term, topic_totals

    def unassign(self, i: int) -> None:
        d, w, k = self.doc_index[i], self.term_index[i], self.topics[i]
        self.doc_topic[d, k] -= 1
        self.topic_term[k, w] -= 1
        self.topic_totals[k] -= 1

    def assign(self, i: int, k: int) -> None:
        d, w = self.doc_index[i], self.term_index[i]
        self.topics[i] = k
        self.doc_topic[d, k] += 1
        self.topic_term[k, w] += 1
        self.topic_totals[k] += 1

    def token_position(self, i: int) -> int:
        """Position of token i within its own document."""
        return int(i - self.doc_offsets[self.doc_index[i]])

    def check_consistency(self) -> None:
        """
        Verify the count matrices against the assignments.

        Raises:
            InternalError: If any count is negative or differs from a recount
        """
        doc_topic, topic_term, topic_totals = self._aggregate()

        if (self.doc_topic < 0).any() or (self.topic_term < 0).any() or (self.topic_totals < 0).any():
            raise InternalError("Negative count in sampler state")
        if not np.array_equal(doc_topic, self.doc_topic):
            raise InternalError("doc_topic counts out of sync with assignments")
        if not np.array_equal(topic_term, self.topic_term):
            raise InternalError("topic_term counts out of sync with assignments")
        if not np.array_equal(topic_totals, self.topic_totals):
            raise InternalError("topic_totals out of sync with assignments")

    def copy(self) -> "SamplerState":
        return SamplerState(
            self.doc_index.copy(),
            self.term_index.copy(),
            self.topics.copy(),
            self.n_docs,
            self.n_terms,
            self.n_topics,
        )


def _draw(weights: np.ndarray, u: float, state: SamplerState, i: int) -> int:
    """Inverse-CDF draw from unnormalized topic weights."""
    cumulative = np.cumsum(weights)
    total = cumulative[-1]
    if not np.isfinite(total) or total <= 0:
        raise NumericInstabilityError(
            f"Topic weights are not a valid distribution (sum={total})",
            doc_index=int(state.doc_index[i]),
            token_position=state.token_position(i),
        )
    k = int(np.searchsorted(cumulative, u * total, side="right"))
    return min(k, state.n_topics - 1)


def gibbs_sweep(
    state: SamplerState,
    alpha: float,
    beta: float,
    rng: np.random.Generator,
) -> None:
    """Resample every token's topic once (collapsed conditional)."""
    v_beta = state.n_terms * beta
    uniforms = rng.random(state.n_tokens)

    for i in range(state.n_tokens):
        state.unassign(i)
        d, w = state.doc_index[i], state.term_index[i]
        weights = (
            (state.doc_topic[d] + alpha)
            * (state.topic_term[:, w] + beta)
            / (state.topic_totals + v_beta)
        )
        state.assign(i, _draw(weights, uniforms[i], state, i))


def fixed_phi_sweep(
    state: SamplerState,
    phi: np.ndarray,
    alpha: float,
    rng: np.random.Generator,
) -> None:
    """Resample every token's topic with topic-term probabilities held at phi."""
    uniforms = rng.random(state.n_tokens)

    for i in range(state.n_tokens):
        state.unassign(i)
        d, w = state.doc_index[i], state.term_index[i]
        weights = (state.doc_topic[d] + alpha) * phi[:, w]
        state.assign(i, _draw(weights, uniforms[i], state, i))


def estimate_theta(doc_topic: np.ndarray, alpha: float) -> np.ndarray:
    """theta[d, k] = (n_dk + alpha) / (n_d + K * alpha)"""
    n_topics = doc_topic.shape[1]
    lengths = doc_topic.sum(axis=1, keepdims=True)
    return (doc_topic + alpha) / (lengths + n_topics * alpha)


def estimate_phi(topic_term: np.ndarray, topic_totals: np.ndarray, beta: float) -> np.ndarray:
    """phi[k, w] = (n_kw + beta) / (n_k + V * beta)"""
    n_terms = topic_term.shape[1]
    return (topic_term + beta) / (topic_totals[:, np.newaxis] + n_terms * beta)


def joint_log_likelihood(state: SamplerState, beta: float) -> float:
    """log p(w | z) with phi integrated out."""
    n_topics, n_terms = state.n_topics, state.n_terms
    ll = n_topics * (gammaln(n_terms * beta) - n_terms * gammaln(beta))
    ll += np.sum(gammaln(state.topic_term + beta))
    ll -= np.sum(gammaln(state.topic_totals + n_terms * beta))
    return float(ll)


def infer_theta(
    dtm: DocumentTermMatrix,
    phi: np.ndarray,
    alpha: float,
    iterations: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Estimate topic proportions for unseen documents under a fixed phi.

    Args:
        dtm: Held-out documents; columns must match phi's vocabulary
        phi: Trained topic-term distributions (n_topics, n_terms)
        alpha: Document-topic prior (same as training)
        iterations: Number of fixed-phi sweeps
        rng: Generator used for initialization and sampling

    Returns:
        theta array (n_docs, n_topics)
    """
    state = SamplerState.initialize(dtm, phi.shape[0], rng)
    for _ in range(iterations):
        fixed_phi_sweep(state, phi, alpha, rng)
    return estimate_theta(state.doc_topic, alpha)


def heldout_log_likelihood(
    dtm: DocumentTermMatrix,
    theta: np.ndarray,
    phi: np.ndarray,
) -> np.ndarray:
    """Per-document log-likelihood: sum_w n_dw * log(sum_k theta_dk * phi_kw)."""
    counts = dtm.counts.tocoo()
    word_probs = np.sum(theta[counts.row] * phi[:, counts.col].T, axis=1)
    word_ll = counts.data * np.log(word_probs)
    return np.bincount(counts.row, weights=word_ll, minlength=dtm.n_docs)


def perplexity(log_likelihood: float, n_tokens: int) -> float:
    """exp(-log_likelihood / n_tokens); lower is better, never below 1."""
    if n_tokens <= 0:
        raise InvalidParameterError(f"Perplexity needs at least one token, got {n_tokens}")
    return float(np.exp(-log_likelihood / n_tokens))


def top_terms(
    phi: np.ndarray,
    vocabulary: Sequence[str],
    n_terms: int = 10,
) -> Dict[int, List[str]]:
    """Highest-probability terms of each topic, ties broken by term index."""
    keywords = {}
    for topic_id, row in enumerate(phi):
        order = np.argsort(-row, kind="stable")[:n_terms]
        keywords[topic_id] = [vocabulary[i] for i in order]
    return keywords


def _check_distribution(name: str, matrix: np.ndarray) -> None:
    if not np.all(np.isfinite(matrix)):
        raise InternalError(f"{name} contains non-finite probabilities")


class LDATopicModel:
    """
    Collapsed Gibbs sampler for LDA.

    Args:
        config: Dict of LDAConfig fields. Missing keys use defaults.
    """

    DEFAULT_CONFIG = LDAConfig().to_dict()

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = LDAConfig.from_dict({**self.DEFAULT_CONFIG, **(config or {})})

    def validate(self, dtm: Optional[DocumentTermMatrix] = None) -> None:
        """Fail fast on bad parameters (and on a bad matrix, if given)."""
        self.config.validate()
        if dtm is not None:
            validate_dtm(dtm)

    def fit(
        self,
        dtm: DocumentTermMatrix,
        callback: Optional[IterationCallback] = None,
    ) -> TopicModelResult:
        """
        Run burn-in plus sampling sweeps and estimate theta and phi.

        Args:
            dtm: Document-term matrix; every document must have tokens
            callback: Optional hook called as callback(iteration, state) after
                      every sweep (burn-in included). The state is live; copy
                      it if it must outlive the call.

        Returns:
            TopicModelResult with theta, phi, keywords and the final state

        Raises:
            InvalidParameterError: Bad hyperparameters or matrix
            EmptyDocumentError: A document has no tokens
            NumericInstabilityError: A conditional distribution was non-finite
        """
        cfg = self.config
        self.validate(dtm)

        rng = np.random.default_rng(cfg.seed)
        state = SamplerState.initialize(dtm, cfg.k, rng)

        logger.info(
            f"Fitting LDA (k={cfg.k}, alpha={cfg.alpha}, beta={cfg.beta}) on "
            f"{dtm.n_docs} documents, {state.n_tokens} tokens, {dtm.n_terms} terms"
        )

        log_likelihoods = []
        n_sweeps = cfg.burnin + cfg.iterations
        for iteration in range(1, n_sweeps + 1):
            gibbs_sweep(state, cfg.alpha, cfg.beta, rng)

            if cfg.keep and iteration % cfg.keep == 0:
                ll = joint_log_likelihood(state, cfg.beta)
                log_likelihoods.append((iteration, ll))
                logger.debug(f"Iteration {iteration}/{n_sweeps}: log-likelihood {ll:.2f}")

            if callback is not None:
                callback(iteration, state)

        theta = estimate_theta(state.doc_topic, cfg.alpha)
        phi = estimate_phi(state.topic_term, state.topic_totals, cfg.beta)
        _check_distribution("theta", theta)
        _check_distribution("phi", phi)

        logger.info(f"LDA fit complete after {n_sweeps} sweeps")

        return TopicModelResult(
            theta=theta,
            phi=phi,
            n_topics=cfg.k,
            topic_assignments=np.argmax(theta, axis=1),
            topic_keywords=top_terms(phi, dtm.vocabulary, cfg.n_top_terms),
            topic_sizes={k: int(n) for k, n in enumerate(state.topic_totals)},
            log_likelihoods=log_likelihoods,
            state=state,
            metadata={
                "model": "lda",
                "config": cfg.to_dict(),
                "n_docs": dtm.n_docs,
                "n_terms": dtm.n_terms,
                "n_tokens": state.n_tokens,
                "doc_ids": dtm.doc_ids,
                "estimate": "final_iteration",
            },
        )

    def transform(
        self,
        dtm: DocumentTermMatrix,
        phi: np.ndarray,
        seed: Optional[int] = None,
    ) -> np.ndarray:
        """Estimate theta for new documents under a trained phi."""
        self.validate(dtm)
        if dtm.n_terms != phi.shape[1]:
            raise InvalidParameterError(
                f"Held-out matrix has {dtm.n_terms} terms, model has {phi.shape[1]}"
            )
        rng = np.random.default_rng(self.config.seed if seed is None else seed)
        theta = infer_theta(dtm, phi, self.config.alpha, self.config.heldout_iterations, rng)
        _check_distribution("theta", theta)
        return theta

    def score(
        self,
        result: TopicModelResult,
        dtm: DocumentTermMatrix,
        seed: Optional[int] = None,
    ) -> Tuple[float, float, int]:
        """
        Score held-out documents against a fitted model.

        Returns:
            (perplexity, total log-likelihood, held-out token count)
        """
        theta = self.transform(dtm, result.phi, seed=seed)
        doc_ll = heldout_log_likelihood(dtm, theta, result.phi)
        total_ll = float(doc_ll.sum())
        if not np.isfinite(total_ll):
            raise InternalError("Held-out log-likelihood is not finite")

        n_tokens = dtm.n_tokens
        return perplexity(total_ll, n_tokens), total_ll, n_tokens
