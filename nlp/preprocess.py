"""
Text Preprocessing Utilities for Notification Tokenization

Splits notification bodies into lower-cased word tokens, removes stop words and
produces the one-row-per-occurrence token table the lexicon joins consume.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

TOKEN_COLUMNS = ["record_id", "category", "timestamp", "word"]


@dataclass
class TokenizationResult:
    """Token table plus the number of records skipped for missing fields."""

    tokens: pd.DataFrame
    excluded_count: int


class TextPreprocessor:
    """Tokenization pipeline for notification bodies."""

    def __init__(
        self,
        stop_words: Optional[Iterable[str]] = None,
        stop_words_path: Optional[Path] = None,
    ):
        """
        Initialize the preprocessor with a stop-word set.

        Args:
            stop_words: Stop words to remove, defaults to DEFAULT_STOP_WORDS
            stop_words_path: Optional file with extra stop words, one per line
        """
        base = DEFAULT_STOP_WORDS if stop_words is None else stop_words
        self.stop_words = {word.strip().lower() for word in base if word.strip()}
        self.stop_words |= self._load_stop_words(stop_words_path)

        # Compile regex patterns for efficiency
        self.url_pattern = re.compile(r"https?://\S+|www\.\S+")
        self.edge_punctuation_pattern = re.compile(r"^[\W_]+|[\W_]+$")
        self.word_pattern = re.compile(r"\w")

    def _load_stop_words(self, path: Optional[Path]) -> set:
        """Load extra stop words from a text file, ignoring blanks and # comments."""
        if not path:
            return set()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Stop-word file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            words = {
                line.strip().lower()
                for line in f
                if line.strip() and not line.lstrip().startswith("#")
            }
        logger.info(f"Loaded {len(words)} extra stop words from {path}")
        return words

    def remove_urls(self, text: str) -> str:
        """Remove URLs from text."""
        return self.url_pattern.sub("", text)

    def split_words(self, text: str) -> List[str]:
        """
        Split text into lower-cased words without removing stop words.

        Each whitespace-delimited chunk yields at most one word: punctuation is
        stripped from both ends and chunks without a word character are dropped.
        Inner apostrophes and hyphens survive ("don't", "e-mail").
        """
        if not isinstance(text, str) or not text.strip():
            return []

        words = []
        for chunk in self.remove_urls(text).lower().split():
            word = self.edge_punctuation_pattern.sub("", chunk)
            if word and self.word_pattern.search(word):
                words.append(word)
        return words

    def is_stop_word(self, word: str) -> bool:
        """Check stop-word membership case-insensitively."""
        return word.lower() in self.stop_words

    def tokenize(self, text: str) -> List[str]:
        """
        Tokenize text into words with stop words removed.

        Words joined by inner punctuation without whitespace ("delayed,late",
        "fire/ems") stay a single token, so a token count never exceeds the
        whitespace word count.

        Args:
            text: Raw notification body

        Returns:
            One entry per surviving word occurrence, in text order
        """
        return [word for word in self.split_words(text) if word not in self.stop_words]

    def tokenize_records(self, records_df: pd.DataFrame) -> TokenizationResult:
        """
        Produce one token row per (record, word) occurrence.

        Records missing record_id or text are skipped and counted. Records whose
        body is empty or consists only of stop words produce no rows and so are
        absent from everything downstream.

        Args:
            records_df: Record frame with record_id, text and optionally
                category/timestamp columns

        Returns:
            TokenizationResult with columns record_id, category, timestamp, word
        """
        if records_df.empty:
            logger.warning("No records to tokenize")
            return TokenizationResult(pd.DataFrame(columns=TOKEN_COLUMNS), 0)

        df = records_df.copy()
        for col in ("category", "timestamp"):
            if col not in df.columns:
                df[col] = pd.NA

        id_col = df["record_id"] if "record_id" in df.columns else pd.Series(pd.NA, index=df.index)
        text_col = df["text"] if "text" in df.columns else pd.Series(pd.NA, index=df.index)
        missing = id_col.isna() | text_col.isna()
        excluded_count = int(missing.sum())
        if excluded_count:
            logger.warning(f"Skipped {excluded_count} records with missing id or text")

        df = df.loc[~missing]
        df = df.assign(word=df["text"].map(self.tokenize))
        tokens = df.explode("word").dropna(subset=["word"])
        tokens = tokens[TOKEN_COLUMNS].reset_index(drop=True)

        logger.info(
            f"Tokenized {len(df)} records into {len(tokens)} tokens "
            f"({tokens['record_id'].nunique()} records with tokens)"
        )
        return TokenizationResult(tokens=tokens, excluded_count=excluded_count)


def count_words(
    tokens_df: pd.DataFrame,
    by: Optional[Sequence[str]] = None,
    top_n: Optional[int] = None,
) -> pd.DataFrame:
    """
    Count word frequencies, optionally within groups.

    Args:
        tokens_df: Token frame with a word column
        by: Optional grouping columns (e.g. ["category"])
        top_n: Keep only the top N words (per group when grouped)

    Returns:
        DataFrame with grouping columns, word and n, most frequent first
    """
    by = list(by or [])
    if tokens_df.empty:
        return pd.DataFrame(columns=by + ["word", "n"])

    counts = tokens_df.groupby(by + ["word"]).size().reset_index(name="n")
    counts = counts.sort_values(
        by + ["n", "word"], ascending=[True] * len(by) + [False, True]
    )

    if top_n is not None:
        counts = counts.groupby(by).head(top_n) if by else counts.head(top_n)

    return counts.reset_index(drop=True)


# Convenience function for quick tokenization
def tokenize(text: str, stop_words: Optional[Iterable[str]] = None) -> List[str]:
    """
    Convenience function for tokenization.

    Args:
        text: Raw text to tokenize
        stop_words: Optional stop words, defaults to DEFAULT_STOP_WORDS

    Returns:
        List of word tokens
    """
    preprocessor = TextPreprocessor(stop_words=stop_words)
    return preprocessor.tokenize(text)


# Default English stop words (snowball list)
DEFAULT_STOP_WORDS = frozenset(
    {
        "a", "about", "above", "after", "again", "against", "all", "am", "an",
        "and", "any", "are", "aren't", "as", "at", "be", "because", "been",
        "before", "being", "below", "between", "both", "but", "by", "can't",
        "cannot", "could", "couldn't", "did", "didn't", "do", "does", "doesn't",
        "doing", "don't", "down", "during", "each", "few", "for", "from",
        "further", "had", "hadn't", "has", "hasn't", "have", "haven't", "having",
        "he", "he'd", "he'll", "he's", "her", "here", "here's", "hers", "herself",
        "him", "himself", "his", "how", "how's", "i", "i'd", "i'll", "i'm",
        "i've", "if", "in", "into", "is", "isn't", "it", "it's", "its", "itself",
        "let's", "me", "more", "most", "mustn't", "my", "myself", "no", "nor",
        "not", "of", "off", "on", "once", "only", "or", "other", "ought", "our",
        "ours", "ourselves", "out", "over", "own", "same", "shan't", "she",
        "she'd", "she'll", "she's", "should", "shouldn't", "so", "some", "such",
        "than", "that", "that's", "the", "their", "theirs", "them", "themselves",
        "then", "there", "there's", "these", "they", "they'd", "they'll",
        "they're", "they've", "this", "those", "through", "to", "too", "under",
        "until", "up", "very", "was", "wasn't", "we", "we'd", "we'll", "we're",
        "we've", "were", "weren't", "what", "what's", "when", "when's", "where",
        "where's", "which", "while", "who", "who's", "whom", "why", "why's",
        "will", "with", "won't", "would", "wouldn't", "you", "you'd", "you'll",
        "you're", "you've", "your", "yours", "yourself", "yourselves",
    }
)
