"""
End-to-end sentiment pipeline.

records -> tokens -> lexicon-joined tokens -> per-group aggregates -> optional
two-category comparison, each stage producing a new frame for the next.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import pandas as pd

from config import load_pipeline_config
from nlp.lexicons import CATEGORICAL, Lexicon, join_lexicon, lexicon_coverage, load_lexicons
from nlp.preprocess import TextPreprocessor
from nlp.records import load_records

from .aggregator import SentimentAggregator
from .comparator import ComparisonError, ComparisonResult, compare_counts, compare_means

logger = logging.getLogger(__name__)


class SentimentPipeline:
    """Runs the tokenize/join/aggregate/compare workflow over one record batch."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        lexicons: Optional[Dict[str, Lexicon]] = None,
        preprocessor: Optional[TextPreprocessor] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration, defaults to load_pipeline_config()
            lexicons: Pre-loaded lexicons, defaults to those named in config
            preprocessor: Tokenizer, defaults to one using the configured stop words
        """
        self.config = config if config is not None else load_pipeline_config()
        self._lexicons = lexicons
        self.preprocessor = preprocessor or TextPreprocessor(
            stop_words_path=self.config.get("stop_words_path")
        )
        self.aggregator = SentimentAggregator()

    @property
    def lexicons(self) -> Dict[str, Lexicon]:
        if self._lexicons is None:
            self._lexicons = load_lexicons(self.config.get("lexicons", {}))
        return self._lexicons

    def get_lexicon(self, name: str) -> Lexicon:
        try:
            return self.lexicons[name]
        except KeyError:
            raise ValueError(
                f"Unknown lexicon '{name}', configured lexicons: {sorted(self.lexicons)}"
            )

    def load(self, source: Union[str, Path, pd.DataFrame]):
        return load_records(
            source,
            columns=self.config.get("columns"),
            timestamp_format=self.config.get("timestamp_format", "%m/%d/%Y %H:%M"),
        )

    def compare(
        self,
        joined: pd.DataFrame,
        lexicon: Lexicon,
        groups: Sequence[str],
        label: str = "negative",
        alpha: float = 0.05,
    ) -> ComparisonResult:
        """Compare label counts (categorical) or mean polarity (numeric) between two categories."""
        if lexicon.kind == CATEGORICAL:
            counts = self.aggregator.record_label_counts(joined, label)
            return compare_counts(counts, "n", "category", groups=groups, alpha=alpha)

        polarity = self.aggregator.record_polarity(joined)
        comparison, _ = compare_means(polarity, "mean", "category", groups=groups, alpha=alpha)
        return comparison

    def run(
        self,
        source: Union[str, Path, pd.DataFrame],
        lexicon_name: str = "bing",
        group_by: Optional[Sequence[str]] = None,
        compare_groups: Optional[Sequence[str]] = None,
        compare_label: str = "negative",
    ) -> Dict[str, Any]:
        """
        Run the complete pipeline.

        Args:
            source: CSV path or raw record DataFrame
            lexicon_name: Configured lexicon to join against
            group_by: Grouping keys, defaults to the configured group_by
            compare_groups: Two categories to compare; skipped if not given
            compare_label: Label counted per record for categorical comparisons

        Returns:
            Dictionary with pipeline results and statistics. A failed comparison
            leaves the run successful with comparison None and the reason in
            comparison_error.
        """
        start_time = time.time()
        group_by = list(group_by or self.config.get("group_by", ["record_id"]))
        alpha = self.config.get("alpha", 0.05)

        try:
            # Step 1: Load records
            loaded = self.load(source)

            # Step 2: Tokenize
            tokenized = self.preprocessor.tokenize_records(loaded.records)
            tokens = tokenized.tokens

            # Step 3: Join lexicon
            lexicon = self.get_lexicon(lexicon_name)
            joined = join_lexicon(tokens, lexicon)

            # Step 4: Aggregate
            if lexicon.kind == CATEGORICAL:
                aggregates = self.aggregator.category_proportions(joined, group_by)
            else:
                aggregates = self.aggregator.polarity_stats(joined, group_by)

            # Step 5: Optional comparison between two categories
            comparison = None
            comparison_error = None
            if compare_groups:
                try:
                    comparison = self.compare(joined, lexicon, compare_groups, compare_label, alpha)
                except ComparisonError as e:
                    logger.warning(f"Comparison of {list(compare_groups)} skipped: {e}")
                    comparison_error = str(e)

            execution_time = time.time() - start_time

            result = {
                "success": True,
                "lexicon": lexicon.name,
                "records_loaded": len(loaded.records),
                "records_excluded": loaded.excluded_count + tokenized.excluded_count,
                "tokens": len(tokens),
                "joined_tokens": len(joined),
                "coverage": lexicon_coverage(tokens, lexicon),
                "records_scored": int(joined["record_id"].nunique()) if not joined.empty else 0,
                "aggregates": aggregates,
                "comparison": comparison,
                "comparison_error": comparison_error,
                "execution_time": execution_time,
            }

            logger.info(
                f"Sentiment pipeline completed in {execution_time:.2f}s: "
                f"{result['records_loaded']} records -> {result['tokens']} tokens -> "
                f"{result['joined_tokens']} joined -> {len(aggregates)} aggregate rows"
            )
            return result

        except Exception as e:
            logger.error(f"Sentiment pipeline failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "execution_time": time.time() - start_time,
            }
