"""
topiclab - LDA topic modeling with cross-validated topic-count selection

Core modules:
    - models: Data classes (DocumentTermMatrix, LDAConfig, TopicModelResult, FoldScore)
    - corpus: Document loading and CountVectorizer-based matrix construction
    - topic_models: Collapsed Gibbs LDA and the TopicModel tagged variant
    - cross_validation: Fold partitioning, held-out perplexity, K selection
"""

from topiclab.src.exceptions import (
    TopicModelError,
    InvalidParameterError,
    EmptyDocumentError,
    InvalidFoldCountError,
    InternalError,
    NumericInstabilityError,
)
from topiclab.src.models import (
    DocumentTermMatrix,
    LDAConfig,
    TopicModelResult,
    FoldScore,
)
from topiclab.src.topic_models import TopicModel, TopicModelKind

__all__ = [
    "TopicModelError",
    "InvalidParameterError",
    "EmptyDocumentError",
    "InvalidFoldCountError",
    "InternalError",
    "NumericInstabilityError",
    "DocumentTermMatrix",
    "LDAConfig",
    "TopicModelResult",
    "FoldScore",
    "TopicModel",
    "TopicModelKind",
]
