"""
Corpus loading and document-term matrix construction.

Tokenization, stopword removal and n-gram formation are delegated to
scikit-learn's CountVectorizer. Documents that end up with zero tokens must
be removed with drop_empty_documents() before fitting; the sampler refuses
them rather than silently zero-weighting them.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.feature_extraction.text import CountVectorizer

from topiclab.src.exceptions import InvalidParameterError
from topiclab.src.models import DocumentTermMatrix

logger = logging.getLogger(__name__)

DEFAULT_VECTORIZER_CONFIG = {
    "ngram_range": [1, 1],
    "min_df": 1,
    "max_df": 1.0,
    "stop_words": "english",
    "lowercase": True,
}


def load_documents(
    path: str,
    text_column: Optional[str] = None,
    id_column: Optional[str] = None,
) -> Tuple[List[str], Optional[List[str]]]:
    """
    Load raw documents from a CSV file or a plain text file.

    CSV files (.csv suffix, or whenever text_column is given) are read with
    pandas; text_column defaults to "text". Any other file is read as one
    document per non-blank line.

    Args:
        path: Path to the input file
        text_column: CSV column holding document text
        id_column: Optional CSV column holding document identifiers

    Returns:
        Tuple of (texts, doc_ids); doc_ids is None when no id column is used
    """
    path = Path(path)

    if path.suffix.lower() == ".csv" or text_column is not None:
        text_column = text_column or "text"
        df = pd.read_csv(path)
        if text_column not in df.columns:
            raise InvalidParameterError(
                f"Column '{text_column}' not found in {path} (columns: {list(df.columns)})"
            )
        texts = df[text_column].fillna("").astype(str).tolist()
        doc_ids = None
        if id_column is not None:
            if id_column not in df.columns:
                raise InvalidParameterError(f"Column '{id_column}' not found in {path}")
            doc_ids = df[id_column].astype(str).tolist()
        logger.info(f"Loaded {len(texts)} documents from {path}")
        return texts, doc_ids

    with open(path, "r", encoding="utf-8") as f:
        texts = [line.strip() for line in f if line.strip()]
    logger.info(f"Loaded {len(texts)} documents from {path}")
    return texts, None


def _make_vectorizer(config: Dict[str, Any]) -> CountVectorizer:
    return CountVectorizer(
        ngram_range=tuple(config["ngram_range"]),
        min_df=config["min_df"],
        max_df=config["max_df"],
        stop_words=config["stop_words"],
        lowercase=config["lowercase"],
    )


def build_dtm(
    documents: Sequence[str],
    doc_ids: Optional[Sequence[str]] = None,
    vectorizer_config: Optional[Dict[str, Any]] = None,
) -> DocumentTermMatrix:
    """
    Vectorize raw texts into a document-term matrix.

    Args:
        documents: Raw document texts
        doc_ids: Optional identifiers, same order as documents
        vectorizer_config: CountVectorizer settings (ngram_range, min_df,
                           max_df, stop_words, lowercase). Missing keys use
                           DEFAULT_VECTORIZER_CONFIG.

    Returns:
        DocumentTermMatrix (may contain empty rows, see drop_empty_documents)

    Raises:
        InvalidParameterError: No documents, or nothing left after filtering
    """
    if len(documents) == 0:
        raise InvalidParameterError("Cannot build a document-term matrix from zero documents")

    config = {**DEFAULT_VECTORIZER_CONFIG, **(vectorizer_config or {})}
    vectorizer = _make_vectorizer(config)

    try:
        counts = vectorizer.fit_transform(documents)
    except ValueError as e:
        # CountVectorizer raises ValueError when every term is filtered out
        raise InvalidParameterError(f"Vectorization produced no terms: {e}") from e

    vocabulary = tuple(vectorizer.get_feature_names_out())
    logger.info(f"Built document-term matrix: {counts.shape[0]} documents x {len(vocabulary)} terms")

    return DocumentTermMatrix(
        counts=counts,
        vocabulary=vocabulary,
        doc_ids=list(doc_ids) if doc_ids is not None else None,
    )


def build_dtm_from_tokens(
    token_lists: Sequence[Sequence[str]],
    doc_ids: Optional[Sequence[str]] = None,
    min_df: int = 1,
) -> DocumentTermMatrix:
    """Build a document-term matrix from already-tokenized documents."""
    if len(token_lists) == 0:
        raise InvalidParameterError("Cannot build a document-term matrix from zero documents")

    vectorizer = CountVectorizer(analyzer=list, min_df=min_df)
    try:
        counts = vectorizer.fit_transform([list(tokens) for tokens in token_lists])
    except ValueError as e:
        raise InvalidParameterError(f"Vectorization produced no terms: {e}") from e

    return DocumentTermMatrix(
        counts=counts,
        vocabulary=tuple(vectorizer.get_feature_names_out()),
        doc_ids=list(doc_ids) if doc_ids is not None else None,
    )


def drop_empty_documents(dtm: DocumentTermMatrix) -> Tuple[DocumentTermMatrix, np.ndarray]:
    """
    Remove documents with zero tokens.

    Returns:
        Tuple of (filtered matrix, indices of the kept rows in the input)
    """
    kept = np.flatnonzero(dtm.doc_lengths > 0)
    n_dropped = dtm.n_docs - kept.size
    if n_dropped:
        logger.warning(f"Dropping {n_dropped} empty document(s) before fitting")
        return dtm.subset(kept), kept
    return dtm, kept
