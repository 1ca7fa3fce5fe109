"""
Sentiment Lexicons and Token Joins

Lexicons map words either to categorical labels (bing/nrc style, a word may
carry several labels) or to a numeric polarity score (afinn style). Joining is
an inner join: tokens without a lexicon entry are dropped, so coverage of the
corpus shrinks and callers must not assume every token was scored.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

CATEGORICAL = "categorical"
NUMERIC = "numeric"
LEXICON_KINDS = (CATEGORICAL, NUMERIC)

# Attribute column carried by each lexicon kind
VALUE_COLUMNS = {CATEGORICAL: "sentiment", NUMERIC: "value"}


@dataclass(frozen=True, eq=False)
class Lexicon:
    """Read-only word -> attribute mapping used for token joins."""

    name: str
    kind: str
    entries: pd.DataFrame

    def __post_init__(self):
        if self.kind not in LEXICON_KINDS:
            raise ValueError(f"Unknown lexicon kind '{self.kind}', expected one of {LEXICON_KINDS}")

        value_col = VALUE_COLUMNS[self.kind]
        missing = {"word", value_col} - set(self.entries.columns)
        if missing:
            raise ValueError(f"Lexicon '{self.name}' is missing columns: {sorted(missing)}")

        entries = self.entries[["word", value_col]].dropna().copy()
        entries["word"] = entries["word"].astype(str).str.strip().str.lower()

        if self.kind == NUMERIC:
            entries[value_col] = pd.to_numeric(entries[value_col], errors="raise").astype(float)
            duplicated = entries["word"][entries["word"].duplicated()]
            if not duplicated.empty:
                raise ValueError(
                    f"Numeric lexicon '{self.name}' maps words to more than one score: "
                    f"{sorted(duplicated.unique())[:5]}"
                )
        else:
            entries[value_col] = entries[value_col].astype(str).str.strip().str.lower()
            entries = entries.drop_duplicates()

        object.__setattr__(self, "entries", entries.reset_index(drop=True))

    @property
    def value_column(self) -> str:
        return VALUE_COLUMNS[self.kind]

    @property
    def words(self) -> set:
        return set(self.entries["word"])

    @property
    def labels(self) -> list:
        """Distinct labels of a categorical lexicon, sorted."""
        if self.kind != CATEGORICAL:
            return []
        return sorted(self.entries["sentiment"].unique())

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def categorical(cls, name: str, mapping: Mapping[str, Union[str, Iterable[str]]]) -> "Lexicon":
        """Build a categorical lexicon from {word: label} or {word: [labels]}."""
        rows = []
        for word, labels in mapping.items():
            if isinstance(labels, str):
                labels = [labels]
            rows.extend({"word": word, "sentiment": label} for label in labels)
        return cls(name, CATEGORICAL, pd.DataFrame(rows, columns=["word", "sentiment"]))

    @classmethod
    def numeric(cls, name: str, mapping: Mapping[str, float]) -> "Lexicon":
        """Build a numeric lexicon from {word: score}."""
        entries = pd.DataFrame(list(mapping.items()), columns=["word", "value"])
        return cls(name, NUMERIC, entries)


def load_lexicon(path: Union[str, Path], kind: str, name: Optional[str] = None) -> Lexicon:
    """
    Load a lexicon from a CSV file with a header of word,sentiment or word,value.

    Args:
        path: CSV file path
        kind: "categorical" or "numeric"
        name: Lexicon name, defaults to the file stem

    Returns:
        Lexicon instance
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Lexicon file not found: {path}")

    entries = pd.read_csv(path)
    lexicon = Lexicon(name or path.stem, kind, entries)
    logger.info(f"Loaded {kind} lexicon '{lexicon.name}' with {len(lexicon)} entries from {path}")
    return lexicon


def load_lexicons(specs: Mapping[str, Mapping[str, str]]) -> Dict[str, Lexicon]:
    """Load every lexicon named in a {name: {path, kind}} configuration mapping."""
    return {
        name: load_lexicon(spec["path"], spec.get("kind", CATEGORICAL), name=name)
        for name, spec in specs.items()
    }


def join_lexicon(tokens_df: pd.DataFrame, lexicon: Lexicon) -> pd.DataFrame:
    """
    Inner-join tokens against a lexicon on exact (lower-cased) word match.

    Tokens with no entry are dropped; a word with several categorical labels
    yields one row per label.

    Args:
        tokens_df: Token frame with a word column
        lexicon: Lexicon to join

    Returns:
        Token columns plus the lexicon's sentiment or value column
    """
    if tokens_df.empty:
        logger.warning(f"No tokens to join against lexicon '{lexicon.name}'")
        return pd.DataFrame(columns=list(tokens_df.columns) + [lexicon.value_column])

    tokens = tokens_df.copy()
    tokens["word"] = tokens["word"].astype(str).str.lower()

    joined = tokens.merge(lexicon.entries, on="word", how="inner")

    matched = int(tokens["word"].isin(lexicon.words).sum())
    logger.info(
        f"Lexicon '{lexicon.name}' matched {matched}/{len(tokens)} tokens "
        f"({matched / len(tokens):.1%} coverage) -> {len(joined)} joined rows"
    )
    return joined.reset_index(drop=True)


def lexicon_coverage(tokens_df: pd.DataFrame, lexicon: Lexicon) -> float:
    """Share of tokens that have at least one lexicon entry (0.0 for no tokens)."""
    if tokens_df.empty:
        return 0.0
    return float(tokens_df["word"].astype(str).str.lower().isin(lexicon.words).mean())
