"""
Unit tests for analytics CLI module.

Tests command-line interface functionality.
"""

from io import StringIO
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from analytics.__main__ import main, run_comparison, run_pipeline, run_polarity, run_sentiment
from analytics.comparator import ComparisonResult


@pytest.fixture
def notifications_csv(tmp_path):
    """Notification export written to CSV."""
    rows = []
    for i in range(4):
        rows.append((f"T{i}", "01/05/2018 08:15", "Transportation",
                     "Bus late, expect delays." if i % 2 else "Train delayed. Service restored, thank you."))
        rows.append((f"W{i}", "02/11/2018 17:40", "Weather",
                     "Severe storm warning" if i % 2 else "Storm warning: flooding and fire hazard"))
    path = tmp_path / "notifications.csv"
    pd.DataFrame(
        rows, columns=["Notification ID", "Date and Time", "Notification Type", "Email Body"]
    ).to_csv(path, index=False)
    return path


def _args(source, **kwargs):
    args = MagicMock()
    args.source = source
    args.config = None
    args.output = None
    for key, value in kwargs.items():
        setattr(args, key, value)
    return args


class TestAnalyticsCLI:
    """Test cases for analytics CLI dispatch."""

    def test_main_no_args(self):
        """Test main function with no arguments prints help."""
        with patch("sys.argv", ["analytics"]), patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            result = main()

        assert result == 1
        assert "usage" in mock_stdout.getvalue()

    @patch("analytics.__main__.run_sentiment")
    def test_main_sentiment_command(self, mock_run):
        """Test sentiment command."""
        mock_run.return_value = 0

        with patch("sys.argv", ["analytics", "sentiment", "data.csv", "--group-by", "category", "hour"]):
            result = main()

        assert result == 0
        args = mock_run.call_args[0][0]
        assert args.group_by == ["category", "hour"]
        assert args.lexicon == "bing"

    @patch("analytics.__main__.run_polarity")
    def test_main_polarity_command(self, mock_run):
        """Test polarity command."""
        mock_run.return_value = 0

        with patch("sys.argv", ["analytics", "polarity", "data.csv"]):
            result = main()

        assert result == 0
        assert mock_run.call_args[0][0].lexicon == "afinn"

    @patch("analytics.__main__.run_comparison")
    def test_main_compare_command(self, mock_run):
        """Test compare command."""
        mock_run.return_value = 0

        with patch("sys.argv", ["analytics", "compare", "data.csv", "--groups", "Weather", "Transportation"]):
            result = main()

        assert result == 0
        assert mock_run.call_args[0][0].groups == ["Weather", "Transportation"]

    @patch("analytics.__main__.run_pipeline")
    def test_main_pipeline_command(self, mock_run):
        """Test pipeline command."""
        mock_run.return_value = 0

        with patch("sys.argv", ["analytics", "pipeline", "data.csv"]):
            result = main()

        assert result == 0
        mock_run.assert_called_once()

    def test_main_invalid_group_key(self):
        """Test argparse rejects unknown grouping keys."""
        with patch("sys.argv", ["analytics", "sentiment", "data.csv", "--group-by", "weekday"]):
            with patch("sys.stderr", new_callable=StringIO):
                with pytest.raises(SystemExit) as exc_info:
                    main()

        assert exc_info.value.code == 2


class TestRunCommands:
    """Test cases for command implementations."""

    def test_run_sentiment(self, notifications_csv, tmp_path):
        """Test proportions are written to CSV."""
        output = tmp_path / "out.csv"
        args = _args(notifications_csv, lexicon="bing", group_by=["category"], pivot=False, no_fill=False, output=output)

        with patch("builtins.print"):
            result = run_sentiment(args)

        assert result == 0
        written = pd.read_csv(output)
        assert list(written.columns) == ["category", "sentiment", "n", "proportion"]

    def test_run_sentiment_pivot(self, notifications_csv, tmp_path):
        """Test the pivot option writes one column per label."""
        output = tmp_path / "wide.csv"
        args = _args(notifications_csv, lexicon="bing", group_by=["category"], pivot=True, no_fill=False, output=output)

        with patch("builtins.print"):
            assert run_sentiment(args) == 0

        written = pd.read_csv(output).set_index("category")
        assert written.loc["Weather", "positive"] == 0

    def test_run_sentiment_rejects_numeric_lexicon(self, notifications_csv):
        """Test the sentiment command needs a categorical lexicon."""
        args = _args(notifications_csv, lexicon="afinn", group_by=["category"], pivot=False, no_fill=False)

        with patch("builtins.print"):
            assert run_sentiment(args) == 1

    def test_run_polarity(self, notifications_csv, tmp_path):
        """Test polarity statistics are written to CSV."""
        output = tmp_path / "polarity.csv"
        args = _args(notifications_csv, lexicon="afinn", group_by=["category"], output=output)

        with patch("builtins.print"):
            assert run_polarity(args) == 0

        written = pd.read_csv(output)
        assert list(written.columns) == ["category", "mean", "sd", "n", "se"]

    def test_run_polarity_missing_source(self, tmp_path):
        """Test a missing source file returns 1."""
        args = _args(tmp_path / "missing.csv", lexicon="afinn", group_by=["category"])

        with patch("builtins.print"):
            assert run_polarity(args) == 1

    def test_run_comparison_numeric(self, notifications_csv):
        """Test a numeric comparison prints both mean comparisons."""
        args = _args(notifications_csv, lexicon="afinn", groups=["Transportation", "Weather"], label="negative")

        with patch("builtins.print") as mock_print:
            assert run_comparison(args) == 0

        printed = " ".join(str(call.args[0]) for call in mock_print.call_args_list)
        assert "ols" in printed
        assert "ttest" in printed

    def test_run_comparison_invalid_groups(self, notifications_csv):
        """Test comparison errors return 1."""
        args = _args(notifications_csv, lexicon="afinn", groups=["Transportation", "Utility"], label="negative")

        with patch("builtins.print"):
            assert run_comparison(args) == 1

    @patch("analytics.__main__.SentimentPipeline")
    def test_run_pipeline_success(self, mock_pipeline_class, notifications_csv):
        """Test the pipeline summary on success."""
        mock_pipeline = MagicMock()
        mock_pipeline_class.return_value = mock_pipeline
        mock_pipeline.run.return_value = {
            "success": True,
            "records_loaded": 8,
            "records_excluded": 0,
            "tokens": 30,
            "joined_tokens": 20,
            "coverage": 0.5,
            "aggregates": pd.DataFrame({"category": ["Weather"]}),
            "comparison": ComparisonResult("poisson", "n", "A", "B", 0.5, 0.1, (0.3, 0.7), 5.0, 0.001, 4, 4),
            "execution_time": 0.1,
        }
        args = _args(notifications_csv, lexicon="bing", group_by=["category"], groups=["A", "B"], label="negative")

        with patch("builtins.print"):
            result = run_pipeline(args)

        assert result == 0
        mock_pipeline.run.assert_called_once_with(
            notifications_csv,
            lexicon_name="bing",
            group_by=["category"],
            compare_groups=["A", "B"],
            compare_label="negative",
        )

    @patch("analytics.__main__.SentimentPipeline")
    def test_run_pipeline_comparison_error(self, mock_pipeline_class, notifications_csv, tmp_path):
        """Test aggregates are still written when the comparison fails."""
        mock_pipeline = MagicMock()
        mock_pipeline_class.return_value = mock_pipeline
        mock_pipeline.run.return_value = {
            "success": True,
            "records_loaded": 8,
            "records_excluded": 0,
            "tokens": 30,
            "joined_tokens": 20,
            "coverage": 0.5,
            "aggregates": pd.DataFrame({"category": ["Weather"]}),
            "comparison": None,
            "comparison_error": "No 'n' events in group(s) ['A']",
            "execution_time": 0.1,
        }
        output = tmp_path / "aggregates.csv"
        args = _args(notifications_csv, lexicon="bing", group_by=["category"], groups=["A", "B"],
                     label="fear", output=output)

        with patch("builtins.print") as mock_print:
            assert run_pipeline(args) == 1

        assert output.exists()
        printed = " ".join(str(call.args[0]) for call in mock_print.call_args_list)
        assert "Comparison skipped" in printed

    @patch("analytics.__main__.SentimentPipeline")
    def test_run_pipeline_failure(self, mock_pipeline_class, notifications_csv):
        """Test the pipeline command returns 1 on failure."""
        mock_pipeline = MagicMock()
        mock_pipeline_class.return_value = mock_pipeline
        mock_pipeline.run.return_value = {"success": False, "error": "boom", "execution_time": 0.0}
        args = _args(notifications_csv, lexicon="bing", group_by=["category"], groups=None, label="negative")

        with patch("builtins.print"):
            assert run_pipeline(args) == 1
