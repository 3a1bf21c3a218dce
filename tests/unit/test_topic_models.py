"""
Unit tests for the TopicModel tagged variant.
"""

import numpy as np
import pytest


class TestTopicModelVariant:
    """TopicModel dispatches fit/score on its kind."""

    def test_lda_constructor_sets_kind_and_params(self):
        from topiclab.src.topic_models import TopicModel, TopicModelKind

        model = TopicModel.lda(k=3, alpha=0.5)

        assert model.kind is TopicModelKind.LDA
        assert model.params == {"k": 3, "alpha": 0.5}

    def test_from_config_accepts_kind_name(self):
        from topiclab.src.topic_models import TopicModel, TopicModelKind

        model = TopicModel.from_config("LDA", {"k": 4})

        assert model.kind is TopicModelKind.LDA
        assert model.params["k"] == 4

    def test_from_config_rejects_unknown_kind(self):
        from topiclab.src.topic_models import TopicModel

        with pytest.raises(ValueError):
            TopicModel.from_config("wordfish", {})

    def test_with_params_returns_new_model(self):
        from topiclab.src.topic_models import TopicModel

        base = TopicModel.lda(k=2, seed=1)
        changed = base.with_params(k=5)

        assert base.params["k"] == 2
        assert changed.params == {"k": 5, "seed": 1}

    def test_fit_dispatches_to_lda(self, tiny_dtm, lda_params):
        from topiclab.src.topic_models import LDATopicModel, TopicModel

        via_variant = TopicModel.lda(**lda_params).fit(tiny_dtm)
        direct = LDATopicModel(lda_params).fit(tiny_dtm)

        np.testing.assert_array_equal(via_variant.theta, direct.theta)
        np.testing.assert_array_equal(via_variant.phi, direct.phi)

    def test_score_dispatches_to_lda(self, tiny_dtm, lda_params):
        from topiclab.src.topic_models import TopicModel

        model = TopicModel.lda(**lda_params)
        result = model.fit(tiny_dtm.subset([0, 1, 2]))

        ppl, log_likelihood, n_tokens = model.score(result, tiny_dtm.subset([3]))

        assert ppl >= 1.0
        assert n_tokens == int(tiny_dtm.doc_lengths[3])

    def test_validate_rejects_bad_params(self):
        from topiclab.src.exceptions import InvalidParameterError
        from topiclab.src.topic_models import TopicModel

        with pytest.raises(InvalidParameterError):
            TopicModel.lda(k=0).validate()
