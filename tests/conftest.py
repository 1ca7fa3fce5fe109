"""Shared fixtures for the incident sentiment test suite."""

import pandas as pd
import pytest

from nlp.lexicons import Lexicon


@pytest.fixture
def transit_records():
    """Three short notifications across two categories."""
    return pd.DataFrame(
        {
            "record_id": [1, 2, 3],
            "timestamp": pd.to_datetime(
                ["2018-01-05 08:15", "2018-01-05 17:40", "2018-02-11 08:05"]
            ),
            "category": ["Transportation", "Transportation", "Local Mass Transit"],
            "text": ["bus late again", "train on time", "bus delayed delayed"],
        }
    )


@pytest.fixture
def transit_bing():
    """Categorical lexicon covering the transit records."""
    return Lexicon.categorical(
        "bing", {"late": "negative", "delayed": "negative", "time": "positive"}
    )


@pytest.fixture
def transit_afinn():
    """Numeric lexicon covering the transit records."""
    return Lexicon.numeric("afinn", {"delayed": -2, "late": -1, "time": 2})
