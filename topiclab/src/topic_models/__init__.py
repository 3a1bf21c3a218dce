"""
Topic model implementations for topiclab.

TopicModel is a tagged value: a TopicModelKind plus a parameter dict.
fit() and score() dispatch on the kind through _ENGINES, so every variant
exposes the same capability set without a class hierarchy.

Available kinds:
    - LDA: collapsed Gibbs sampling (LDATopicModel)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from topiclab.src.models import DocumentTermMatrix, TopicModelResult
from topiclab.src.topic_models.lda_model import IterationCallback, LDATopicModel


class TopicModelKind(Enum):
    LDA = "lda"


_ENGINES = {
    TopicModelKind.LDA: LDATopicModel,
}


@dataclass(frozen=True)
class TopicModel:
    """
    A topic model variant and its parameters.

    Usage:
        model = TopicModel.lda(k=5, alpha=0.1, beta=0.01, seed=42)
        result = model.fit(dtm)
        perplexity, log_likelihood, n_tokens = model.score(result, heldout_dtm)
    """

    kind: TopicModelKind
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def lda(cls, **params) -> "TopicModel":
        return cls(TopicModelKind.LDA, dict(params))

    @classmethod
    def from_config(cls, kind: str, params: Dict[str, Any]) -> "TopicModel":
        """Build from a kind name ("lda") and a parameter dict."""
        return cls(TopicModelKind(kind.lower()), dict(params))

    def with_params(self, **params) -> "TopicModel":
        """Copy with some parameters replaced."""
        return TopicModel(self.kind, {**self.params, **params})

    def _engine(self):
        return _ENGINES[self.kind](self.params)

    def validate(self, dtm: Optional[DocumentTermMatrix] = None) -> None:
        self._engine().validate(dtm)

    def fit(
        self,
        dtm: DocumentTermMatrix,
        callback: Optional[IterationCallback] = None,
    ) -> TopicModelResult:
        return self._engine().fit(dtm, callback=callback)

    def score(
        self,
        result: TopicModelResult,
        heldout_dtm: DocumentTermMatrix,
        seed: Optional[int] = None,
    ) -> Tuple[float, float, int]:
        return self._engine().score(result, heldout_dtm, seed=seed)


__all__ = ["LDATopicModel", "TopicModel", "TopicModelKind"]
