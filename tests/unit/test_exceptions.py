"""
Unit tests for the exception hierarchy.

Errors raised inside process-pool workers are pickled back to the parent,
so each one must survive a round trip with its context intact.
"""

import pickle


class TestExceptionHierarchy:

    def test_value_error_subclasses(self):
        from topiclab.src.exceptions import (
            EmptyDocumentError,
            InvalidFoldCountError,
            InvalidParameterError,
            TopicModelError,
        )

        for exc_cls in (InvalidParameterError, InvalidFoldCountError):
            assert issubclass(exc_cls, TopicModelError)
            assert issubclass(exc_cls, ValueError)
        assert issubclass(EmptyDocumentError, TopicModelError)

    def test_numeric_instability_is_internal_error(self):
        from topiclab.src.exceptions import InternalError, NumericInstabilityError

        assert issubclass(NumericInstabilityError, InternalError)


class TestPickling:
    """Worker exceptions reach the parent process unchanged."""

    def test_numeric_instability_round_trip(self):
        from topiclab.src.exceptions import NumericInstabilityError

        error = NumericInstabilityError("non-finite weights", doc_index=3, token_position=4)

        restored = pickle.loads(pickle.dumps(error))

        assert isinstance(restored, NumericInstabilityError)
        assert restored.doc_index == 3
        assert restored.token_position == 4
        assert restored.message == "non-finite weights"
        assert str(restored) == str(error)

    def test_empty_document_round_trip(self):
        from topiclab.src.exceptions import EmptyDocumentError

        error = EmptyDocumentError([1, 4], doc_ids=["d1", "d4"])

        restored = pickle.loads(pickle.dumps(error))

        assert restored.doc_indices == [1, 4]
        assert restored.doc_ids == ["d1", "d4"]
        assert str(restored) == str(error)

    def test_plain_errors_round_trip(self):
        from topiclab.src.exceptions import InvalidFoldCountError, InvalidParameterError

        for error in (InvalidParameterError("k must be >= 1"), InvalidFoldCountError("n_folds")):
            restored = pickle.loads(pickle.dumps(error))
            assert type(restored) is type(error)
            assert str(restored) == str(error)
