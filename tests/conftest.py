"""
Pytest configuration and shared fixtures for topiclab tests.

This module provides small, hand-built document-term matrices and short
iteration budgets so the pure-Python sampler stays fast under test.
"""

import os
import tempfile
from typing import Any, Dict, List

import numpy as np
import pytest


# =============================================================================
# Document-Term Matrix Fixtures
# =============================================================================

@pytest.fixture
def tiny_counts() -> np.ndarray:
    """4 documents x 5 terms; docs 0-1 lean on terms 0-1, docs 2-3 on terms 2-4."""
    return np.array([
        [3, 2, 0, 0, 1],
        [2, 3, 1, 0, 0],
        [0, 0, 2, 3, 2],
        [0, 1, 3, 2, 2],
    ])


@pytest.fixture
def tiny_dtm(tiny_counts):
    """DocumentTermMatrix built from tiny_counts."""
    from topiclab.src.models import DocumentTermMatrix

    return DocumentTermMatrix.from_dense(
        tiny_counts,
        vocabulary=["budget", "tax", "war", "troops", "border"],
        doc_ids=["d0", "d1", "d2", "d3"],
    )


@pytest.fixture
def ten_doc_dtm():
    """10 documents x 6 terms with two clear themes (for cross-validation)."""
    from topiclab.src.models import DocumentTermMatrix

    counts = np.array([
        [4, 3, 2, 0, 0, 0],
        [3, 4, 1, 0, 1, 0],
        [5, 2, 3, 0, 0, 0],
        [2, 3, 4, 1, 0, 0],
        [3, 3, 3, 0, 0, 1],
        [0, 0, 1, 4, 3, 2],
        [0, 0, 0, 3, 4, 3],
        [1, 0, 0, 2, 5, 3],
        [0, 1, 0, 4, 2, 4],
        [0, 0, 0, 3, 3, 3],
    ])
    vocabulary = ["economy", "jobs", "tax", "health", "care", "insurance"]
    return DocumentTermMatrix.from_dense(counts, vocabulary=vocabulary)


# =============================================================================
# Parameter Fixtures
# =============================================================================

@pytest.fixture
def lda_params() -> Dict[str, Any]:
    """Parameters for the 4-document reference scenario."""
    return {
        "k": 2,
        "alpha": 0.1,
        "beta": 0.01,
        "seed": 42,
        "burnin": 10,
        "iterations": 50,
        "keep": 10,
    }


@pytest.fixture
def fast_lda_params() -> Dict[str, Any]:
    """Short iteration budget for tests that fit many models."""
    return {
        "k": 2,
        "alpha": 0.1,
        "beta": 0.01,
        "seed": 7,
        "burnin": 5,
        "iterations": 15,
        "keep": 0,
        "heldout_iterations": 10,
    }


# =============================================================================
# Raw Document Fixtures
# =============================================================================

@pytest.fixture
def sample_documents() -> List[str]:
    """Legislator-style tweets on two themes."""
    return [
        # Economy cluster
        "Tax cuts will grow the economy and create jobs for working families.",
        "Our budget plan lowers taxes and balances spending.",
        "Small business owners need lower taxes to create jobs.",
        "The economy added thousands of jobs this quarter.",
        "Wasteful spending hurts the budget and the economy.",
        "Cutting taxes puts money back into family budgets.",
        # Health care cluster
        "Health care should be affordable for every family.",
        "Protect insurance coverage for preexisting conditions.",
        "Expanding health insurance lowers care costs for patients.",
        "Hospitals and nurses deserve support for patient care.",
        "Prescription drug costs are crushing patients and families.",
        "Medicare must cover dental and vision care.",
    ]


@pytest.fixture
def documents_file(sample_documents) -> str:
    """Temporary text file with one document per line."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
        f.write("\n".join(sample_documents) + "\n")
        temp_path = f.name

    yield temp_path

    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def documents_csv(sample_documents) -> str:
    """Temporary CSV file with tweet_id and text columns."""
    import pandas as pd

    with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False) as f:
        temp_path = f.name
    pd.DataFrame({
        "tweet_id": [f"t{i:03d}" for i in range(len(sample_documents))],
        "text": sample_documents,
    }).to_csv(temp_path, index=False)

    yield temp_path

    if os.path.exists(temp_path):
        os.unlink(temp_path)
