"""
Unit tests for the NLP command-line interface.
"""

from io import StringIO
from unittest.mock import patch

import pandas as pd
import pytest

from nlp.__main__ import main


@pytest.fixture
def notifications_csv(tmp_path):
    path = tmp_path / "notifications.csv"
    pd.DataFrame(
        {
            "Notification ID": ["1", "2", "3"],
            "Date and Time": ["01/05/2018 08:15", "01/05/2018 17:40", "02/11/2018 08:05"],
            "Notification Type": ["Transportation", "Transportation", "Weather"],
            "Email Body": ["Bus delayed, bus late", "Train delayed", "Storm warning"],
        }
    ).to_csv(path, index=False)
    return path


def _run(argv):
    with patch("sys.argv", ["nlp"] + argv), patch("sys.stdout", new_callable=StringIO) as stdout:
        result = main()
    return result, stdout.getvalue()


class TestNlpCLI:
    """Test cases for the nlp CLI."""

    def test_no_command(self):
        """Test help is printed without a command."""
        result, output = _run([])

        assert result == 1
        assert "usage" in output

    def test_tokenize(self):
        """Test tokenizing a string removes stop words."""
        result, output = _run(["tokenize", "The bus is LATE again!"])

        assert result == 0
        assert output.strip() == "bus late"

    def test_tokenize_keep_stop_words(self):
        """Test stop words can be kept."""
        result, output = _run(["tokenize", "The bus is late", "--keep-stop-words"])

        assert result == 0
        assert output.strip() == "the bus is late"

    def test_count_words(self, notifications_csv):
        """Test word counts over a CSV source."""
        result, output = _run(["count-words", str(notifications_csv), "--top", "2"])

        assert result == 0
        lines = output.strip().splitlines()
        assert len(lines) == 3
        assert lines[1].split() == ["bus", "2"]

    def test_coverage(self, notifications_csv):
        """Test coverage is reported per lexicon."""
        result, output = _run(["coverage", str(notifications_csv), "--lexicon", "bing"])

        assert result == 0
        assert "bing (categorical)" in output
        assert "afinn" not in output

    def test_coverage_unknown_lexicon(self, notifications_csv):
        """Test an unknown lexicon name fails."""
        result, _ = _run(["coverage", str(notifications_csv), "--lexicon", "vader"])

        assert result == 1

    def test_count_words_missing_source(self, tmp_path):
        """Test a missing source file fails."""
        result, _ = _run(["count-words", str(tmp_path / "missing.csv")])

        assert result == 1
