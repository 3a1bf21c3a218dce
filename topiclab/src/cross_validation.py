"""
CrossValidator - held-out perplexity across candidate topic counts.

For each candidate K the documents are split into F disjoint folds. Each
fold is scored by training on the other F-1 folds and computing held-out
perplexity on it. The result table has one row per (K, fold) and is meant
for plotting and for picking K (lowest mean perplexity, spread across folds
reported alongside).

Design:
    - Uses dependency injection for TopicModel (testable, swappable)
    - All parameters and fold counts validated before any sampling
    - Folds of one K may run concurrently; each worker owns its sampler state
      and only reads the shared document-term matrix
    - Per-fold seeds derive from (seed, K, fold), so results do not depend on
      worker count or completion order
"""

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from topiclab.src.exceptions import InvalidFoldCountError, InvalidParameterError
from topiclab.src.models import DocumentTermMatrix, FoldScore
from topiclab.src.topic_models import TopicModel

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "k",
    "fold",
    "perplexity",
    "log_likelihood",
    "n_tokens",
    "n_train_docs",
    "n_test_docs",
]


def partition_folds(
    n_docs: int,
    n_folds: int,
    seed: Optional[int] = None,
) -> List[np.ndarray]:
    """
    Shuffle document indices and split them into n_folds disjoint folds.

    Fold sizes differ by at most one. Indices inside a fold are sorted.

    Raises:
        InvalidFoldCountError: If n_folds < 2 or n_folds > n_docs
    """
    if isinstance(n_folds, bool) or not isinstance(n_folds, (int, np.integer)):
        raise InvalidFoldCountError(f"Fold count must be an integer, got {n_folds!r}")
    if n_folds < 2 or n_folds > n_docs:
        raise InvalidFoldCountError(
            f"Fold count must be between 2 and the number of documents ({n_docs}), "
            f"got {n_folds}"
        )

    rng = np.random.default_rng(seed)
    order = rng.permutation(n_docs)
    return [np.sort(chunk) for chunk in np.array_split(order, n_folds)]


def fold_seed(seed: Optional[int], k: int, fold: int) -> Optional[int]:
    """Deterministic per-fold seed; None stays None (fresh entropy)."""
    if seed is None:
        return None
    return int(np.random.SeedSequence([seed, k, fold]).generate_state(1)[0])


def _score_fold(
    model: TopicModel,
    dtm: DocumentTermMatrix,
    k: int,
    fold: int,
    train_idx: np.ndarray,
    test_idx: np.ndarray,
) -> FoldScore:
    """Train on train_idx, score test_idx."""
    train_dtm = dtm.subset(train_idx)
    test_dtm = dtm.subset(test_idx)

    result = model.fit(train_dtm)
    ppl, log_likelihood, n_tokens = model.score(result, test_dtm)

    logger.info(
        f"k={k} fold={fold}: perplexity {ppl:.3f} "
        f"({len(train_idx)} train / {len(test_idx)} test documents)"
    )

    return FoldScore(
        k=k,
        fold=fold,
        perplexity=ppl,
        log_likelihood=log_likelihood,
        n_tokens=n_tokens,
        n_train_docs=len(train_idx),
        n_test_docs=len(test_idx),
    )


class CrossValidator:
    """
    Run F-fold cross-validation of a topic model over candidate topic counts.

    Args:
        model: TopicModel to cross-validate; its `k` and `seed` are replaced
               per candidate and per fold
        config: Cross-validation settings:
                - n_folds: Number of folds (default 5)
                - max_workers: Folds scored concurrently (default 1)
                - use_processes: Process pool instead of threads (default False)
                - seed: Seed for fold partitioning (default: model's seed)
    """

    DEFAULT_CONFIG = {
        "n_folds": 5,
        "max_workers": 1,
        "use_processes": False,
    }

    def __init__(self, model: TopicModel, config: Optional[Dict[str, Any]] = None):
        self.model = model
        self.config = {**self.DEFAULT_CONFIG, **(config or {})}

        self.n_folds = self.config["n_folds"]
        self.max_workers = max(1, int(self.config["max_workers"]))
        self.use_processes = bool(self.config["use_processes"])
        self.seed = self.config.get("seed", model.params.get("seed"))

    def _validate(self, dtm: DocumentTermMatrix, k_values: Sequence[int]) -> None:
        if len(k_values) == 0:
            raise InvalidParameterError("At least one candidate k is required")

        # fold count and matrix first, then every candidate's parameters
        partition_folds(dtm.n_docs, self.n_folds, self.seed)
        self.model.validate(dtm)
        for k in k_values:
            self.model.with_params(k=k).validate()

    def score_fold(
        self,
        dtm: DocumentTermMatrix,
        k: int,
        fold: int,
        folds: Sequence[np.ndarray],
    ) -> FoldScore:
        """Score a single fold (train on all the other folds)."""
        test_idx = folds[fold]
        train_idx = np.sort(np.concatenate([f for i, f in enumerate(folds) if i != fold]))
        fold_model = self.model.with_params(k=k, seed=fold_seed(self.seed, k, fold))
        return _score_fold(fold_model, dtm, k, fold, train_idx, test_idx)

    def run_k(self, dtm: DocumentTermMatrix, k: int) -> List[FoldScore]:
        """
        Cross-validate a single topic count.

        Returns:
            One FoldScore per fold, ordered by fold index

        Raises:
            InvalidFoldCountError: If the fold count is out of range
        """
        self._validate(dtm, [k])
        return self._run_k(dtm, k)

    def _run_k(self, dtm: DocumentTermMatrix, k: int) -> List[FoldScore]:
        folds = partition_folds(dtm.n_docs, self.n_folds, self.seed)
        workers = min(self.max_workers, len(folds))

        logger.info(f"Cross-validating k={k} over {len(folds)} folds ({workers} worker(s))")

        if workers == 1:
            return [self.score_fold(dtm, k, fold, folds) for fold in range(len(folds))]

        executor_cls = ProcessPoolExecutor if self.use_processes else ThreadPoolExecutor
        with executor_cls(max_workers=workers) as executor:
            futures = [
                executor.submit(self.score_fold, dtm, k, fold, folds)
                for fold in range(len(folds))
            ]
            return [future.result() for future in futures]

    def run(
        self,
        dtm: DocumentTermMatrix,
        k_values: Sequence[int],
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> pd.DataFrame:
        """
        Cross-validate every candidate topic count.

        Args:
            dtm: Document-term matrix (shared read-only across folds)
            k_values: Candidate topic counts, run in the given order
            should_stop: Optional callable checked before each K; returning
                         True ends the sweep and returns what was scored so far

        Returns:
            DataFrame with columns k, fold, perplexity, log_likelihood,
            n_tokens, n_train_docs, n_test_docs
        """
        k_values = list(k_values)
        self._validate(dtm, k_values)

        records = []
        for k in k_values:
            if should_stop is not None and should_stop():
                logger.warning(f"Sweep stopped before k={k}")
                break
            records.extend(score.to_dict() for score in self._run_k(dtm, k))

        return pd.DataFrame(records, columns=RESULT_COLUMNS)


def summarize(results: pd.DataFrame) -> pd.DataFrame:
    """
    Mean and standard deviation of perplexity and log-likelihood per K.

    Returns:
        DataFrame indexed 0..n-1 with columns k, n_folds, perplexity_mean,
        perplexity_std, log_likelihood_mean, log_likelihood_std (sorted by k)
    """
    summary = (
        results.groupby("k")
        .agg(
            n_folds=("fold", "count"),
            perplexity_mean=("perplexity", "mean"),
            perplexity_std=("perplexity", "std"),
            log_likelihood_mean=("log_likelihood", "mean"),
            log_likelihood_std=("log_likelihood", "std"),
        )
        .reset_index()
        .sort_values("k")
        .reset_index(drop=True)
    )
    return summary


def select_k(summary: pd.DataFrame) -> int:
    """Topic count with the lowest mean perplexity (smaller K wins ties)."""
    if summary.empty:
        raise InvalidParameterError("Cannot select k from an empty summary")
    best = summary.sort_values(["perplexity_mean", "k"]).iloc[0]
    return int(best["k"])
