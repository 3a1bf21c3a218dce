"""
Unit tests for document loading and document-term matrix construction.
"""

import numpy as np
import pytest


class TestBuildDTM:
    """Tests for build_dtm (CountVectorizer wrapper)."""

    def test_builds_counts_and_vocabulary(self, sample_documents):
        from topiclab.src.corpus import build_dtm

        dtm = build_dtm(sample_documents)

        assert dtm.n_docs == len(sample_documents)
        assert dtm.n_terms == len(dtm.vocabulary)
        assert "economy" in dtm.vocabulary
        assert "care" in dtm.vocabulary

    def test_removes_english_stopwords(self, sample_documents):
        from topiclab.src.corpus import build_dtm

        dtm = build_dtm(sample_documents)

        assert "the" not in dtm.vocabulary
        assert "and" not in dtm.vocabulary

    def test_keeps_doc_ids(self, sample_documents):
        from topiclab.src.corpus import build_dtm

        ids = [f"t{i}" for i in range(len(sample_documents))]
        dtm = build_dtm(sample_documents, doc_ids=ids)

        assert dtm.doc_ids == ids

    def test_bigrams_from_config(self):
        from topiclab.src.corpus import build_dtm

        dtm = build_dtm(
            ["health care costs", "health care access"],
            vectorizer_config={"ngram_range": [1, 2]},
        )

        assert "health care" in dtm.vocabulary
        assert dtm.counts[:, dtm.vocabulary.index("health care")].sum() == 2

    def test_counts_match_document_text(self):
        from topiclab.src.corpus import build_dtm

        dtm = build_dtm(["tax tax budget", "budget"], vectorizer_config={"stop_words": None})

        tax = dtm.vocabulary.index("tax")
        budget = dtm.vocabulary.index("budget")
        dense = dtm.counts.toarray()
        assert dense[0, tax] == 2
        assert dense[0, budget] == 1
        assert dense[1, budget] == 1
        np.testing.assert_array_equal(dtm.doc_lengths, [3, 1])

    def test_no_documents_rejected(self):
        from topiclab.src.corpus import build_dtm
        from topiclab.src.exceptions import InvalidParameterError

        with pytest.raises(InvalidParameterError):
            build_dtm([])

    def test_only_stopwords_rejected(self):
        from topiclab.src.corpus import build_dtm
        from topiclab.src.exceptions import InvalidParameterError

        with pytest.raises(InvalidParameterError):
            build_dtm(["the and of", "to be or not to be"])


class TestBuildDTMFromTokens:

    def test_pretokenized_documents(self):
        from topiclab.src.corpus import build_dtm_from_tokens

        dtm = build_dtm_from_tokens([["tax", "cut", "tax"], ["health_care"]])

        assert set(dtm.vocabulary) == {"tax", "cut", "health_care"}
        np.testing.assert_array_equal(dtm.doc_lengths, [3, 1])


class TestDropEmptyDocuments:

    def test_drops_empty_rows_and_reports_kept_indices(self):
        from topiclab.src.corpus import build_dtm, drop_empty_documents

        dtm = build_dtm(
            ["tax budget", "the and of", "health care"],
            doc_ids=["a", "b", "c"],
        )

        filtered, kept = drop_empty_documents(dtm)

        assert kept.tolist() == [0, 2]
        assert filtered.doc_ids == ["a", "c"]
        assert (filtered.doc_lengths > 0).all()
        assert filtered.vocabulary == dtm.vocabulary

    def test_no_empty_rows_returns_same_matrix(self, tiny_dtm):
        from topiclab.src.corpus import drop_empty_documents

        filtered, kept = drop_empty_documents(tiny_dtm)

        assert filtered is tiny_dtm
        assert kept.tolist() == [0, 1, 2, 3]


class TestLoadDocuments:

    def test_text_file_one_document_per_line(self, documents_file, sample_documents):
        from topiclab.src.corpus import load_documents

        texts, doc_ids = load_documents(documents_file)

        assert texts == sample_documents
        assert doc_ids is None

    def test_csv_with_id_column(self, documents_csv, sample_documents):
        from topiclab.src.corpus import load_documents

        texts, doc_ids = load_documents(documents_csv, id_column="tweet_id")

        assert texts == sample_documents
        assert doc_ids[0] == "t000"

    def test_csv_missing_text_column(self, documents_csv):
        from topiclab.src.corpus import load_documents
        from topiclab.src.exceptions import InvalidParameterError

        with pytest.raises(InvalidParameterError):
            load_documents(documents_csv, text_column="body")
