"""
Sentiment Aggregation Module

This module provides functionality to:
1. Derive hour-of-day and month buckets from record timestamps
2. Reduce lexicon-joined tokens to per-group label counts and proportions
3. Reshape label counts into a wide table with an explicit zero-fill policy
4. Reduce numeric polarity scores to mean, standard deviation and standard error

Groups are formed only from joined tokens. A record or group without any
lexicon match after the inner join produces no row at all; absence must not be
read as neutral or zero sentiment.
"""

import logging
from typing import Optional, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

GROUP_KEYS = ("record_id", "category", "hour", "month")
TIME_KEYS = ("hour", "month")


def derive_time_buckets(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add hour (0-23) and month (1-12) columns extracted from the timestamp column.

    Args:
        df: Frame with a timestamp column

    Returns:
        Copy of the frame with hour and month columns
    """
    if "timestamp" not in df.columns:
        raise ValueError("Cannot derive time buckets without a timestamp column")

    out = df.copy()
    timestamps = pd.to_datetime(out["timestamp"], errors="coerce")
    out["hour"] = timestamps.dt.hour.astype("Int64")
    out["month"] = timestamps.dt.month.astype("Int64")
    return out


class SentimentAggregator:
    """Reduces lexicon-joined tokens to per-group sentiment statistics."""

    def __init__(self, label_column: str = "sentiment", value_column: str = "value"):
        """
        Initialize the sentiment aggregator.

        Args:
            label_column: Column holding categorical lexicon labels
            value_column: Column holding numeric polarity scores
        """
        self.label_column = label_column
        self.value_column = value_column

    def _prepare(self, joined_df: pd.DataFrame, group_by: Sequence[str], column: str):
        """Validate the grouping specification and add time buckets when needed."""
        keys = [group_by] if isinstance(group_by, str) else list(group_by)
        if not keys:
            raise ValueError("group_by must name at least one grouping key")

        unknown = [key for key in keys if key not in GROUP_KEYS]
        if unknown:
            raise ValueError(f"Unknown grouping keys {unknown}, expected a subset of {GROUP_KEYS}")

        if column not in joined_df.columns and not joined_df.empty:
            raise ValueError(f"Joined tokens have no '{column}' column")

        df = joined_df
        if any(key in TIME_KEYS for key in keys) and not df.empty:
            df = derive_time_buckets(df)

        return df, keys

    def category_proportions(
        self, joined_df: pd.DataFrame, group_by: Sequence[str] = ("record_id",)
    ) -> pd.DataFrame:
        """
        Count each label within each group and divide by the group total.

        Args:
            joined_df: Tokens joined against a categorical lexicon
            group_by: Grouping keys drawn from record_id, category, hour, month

        Returns:
            DataFrame with grouping columns, label column, n and proportion.
            Proportions sum to 1.0 within every group.
        """
        df, keys = self._prepare(joined_df, group_by, self.label_column)
        columns = keys + [self.label_column, "n", "proportion"]

        if df.empty:
            logger.warning("No joined tokens to aggregate")
            return pd.DataFrame(columns=columns)

        counts = (
            df.groupby(keys + [self.label_column], dropna=False)
            .size()
            .reset_index(name="n")
        )
        totals = counts.groupby(keys, dropna=False)["n"].transform("sum")
        counts["proportion"] = counts["n"] / totals

        logger.info(
            f"Computed {len(counts)} label proportions across "
            f"{len(counts.drop_duplicates(keys))} groups by {keys}"
        )
        return counts[columns]

    def pivot_counts(
        self,
        joined_df: pd.DataFrame,
        group_by: Sequence[str] = ("record_id",),
        fill_missing: bool = True,
        labels: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """
        Reshape label counts to one column per label.

        Only groups with at least one joined token appear; zero-filling applies
        to missing label/group combinations, never to missing groups.

        Args:
            joined_df: Tokens joined against a categorical lexicon
            group_by: Grouping keys
            fill_missing: Fill absent label/group combinations with 0 (else NaN)
            labels: Extra labels to include as columns even if never seen

        Returns:
            Wide DataFrame keyed by the grouping columns
        """
        counts = self.category_proportions(joined_df, group_by)
        keys = [group_by] if isinstance(group_by, str) else list(group_by)

        label_columns = sorted(set(counts[self.label_column]) | set(labels or []))
        if counts.empty:
            return pd.DataFrame(columns=keys + label_columns)

        wide = counts.set_index(keys + [self.label_column])["n"].unstack(self.label_column)
        wide = wide.reindex(columns=label_columns)
        if fill_missing:
            wide = wide.fillna(0).astype(int)

        wide.columns.name = None
        return wide.reset_index()

    def net_sentiment(
        self,
        joined_df: pd.DataFrame,
        group_by: Sequence[str] = ("record_id",),
        positive: str = "positive",
        negative: str = "negative",
    ) -> pd.DataFrame:
        """
        Positive minus negative label counts per group.

        Args:
            joined_df: Tokens joined against a categorical lexicon
            group_by: Grouping keys
            positive: Label counted as positive
            negative: Label counted as negative

        Returns:
            Wide count table with an added net column
        """
        wide = self.pivot_counts(joined_df, group_by, fill_missing=True, labels=[positive, negative])
        wide["net"] = wide[positive] - wide[negative]
        return wide

    def polarity_stats(
        self, joined_df: pd.DataFrame, group_by: Sequence[str] = ("record_id",)
    ) -> pd.DataFrame:
        """
        Compute mean, standard deviation, sample size and standard error of scores.

        Standard deviation uses the sample estimator (ddof=1), so sd and se are
        NaN for a group with a single score rather than 0.

        Args:
            joined_df: Tokens joined against a numeric lexicon
            group_by: Grouping keys

        Returns:
            DataFrame with grouping columns, mean, sd, n and se
        """
        df, keys = self._prepare(joined_df, group_by, self.value_column)
        columns = keys + ["mean", "sd", "n", "se"]

        if df.empty:
            logger.warning("No joined tokens to aggregate")
            return pd.DataFrame(columns=columns)

        values = df.assign(**{self.value_column: df[self.value_column].astype(float)})
        stats = (
            values.groupby(keys, dropna=False)[self.value_column]
            .agg(mean="mean", sd="std", n="count")
            .reset_index()
        )
        stats["se"] = stats["sd"] / np.sqrt(stats["n"])

        undefined = int(stats["se"].isna().sum())
        if undefined:
            logger.debug(f"{undefined} groups have a single score; sd/se left undefined")

        logger.info(f"Computed polarity statistics for {len(stats)} groups by {keys}")
        return stats[columns]

    def record_polarity(self, joined_df: pd.DataFrame) -> pd.DataFrame:
        """Per-record polarity statistics with the record's category carried."""
        return self.polarity_stats(joined_df, ["record_id", "category"])

    def record_label_counts(
        self,
        joined_df: pd.DataFrame,
        label: str,
        records_df: Optional[pd.DataFrame] = None,
    ) -> pd.DataFrame:
        """
        Count occurrences of one label per record.

        Records with joined tokens but none carrying the label get n = 0. Records
        with no joined tokens at all are absent unless records_df is given, in
        which case every record in it is reinstated with its count (0 if unmatched).

        Args:
            joined_df: Tokens joined against a categorical lexicon
            label: Label to count, e.g. "fear"
            records_df: Optional record frame used to reinstate unmatched records

        Returns:
            DataFrame with record_id, category and n
        """
        base_source = joined_df if records_df is None else records_df
        if base_source.empty:
            return pd.DataFrame(columns=["record_id", "category", "n"])

        counts = base_source[["record_id", "category"]].drop_duplicates("record_id").copy()

        if joined_df.empty:
            hits = pd.Series(dtype=int)
        else:
            hits = joined_df[joined_df[self.label_column] == label].groupby("record_id").size()

        counts["n"] = counts["record_id"].map(hits).fillna(0).astype(int)

        logger.info(
            f"Counted label '{label}' for {len(counts)} records "
            f"({int((counts['n'] > 0).sum())} with at least one match)"
        )
        return counts.reset_index(drop=True)


def proportions_by_group(joined_df: pd.DataFrame, group_by: Sequence[str] = ("record_id",)) -> pd.DataFrame:
    """Convenience wrapper for SentimentAggregator.category_proportions."""
    return SentimentAggregator().category_proportions(joined_df, group_by)


def polarity_by_group(joined_df: pd.DataFrame, group_by: Sequence[str] = ("record_id",)) -> pd.DataFrame:
    """Convenience wrapper for SentimentAggregator.polarity_stats."""
    return SentimentAggregator().polarity_stats(joined_df, group_by)
