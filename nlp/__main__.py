"""
Command-line interface for NLP tokenization utilities.

Usage:
    python -m nlp tokenize "Your text here"
    python -m nlp count-words notifications.csv --by category --top 10
    python -m nlp coverage notifications.csv --lexicon nrc
"""

import argparse

# Configure logging
import logging
import sys
from pathlib import Path

from config import load_pipeline_config

from .lexicons import lexicon_coverage, load_lexicons
from .preprocess import TextPreprocessor, count_words
from .records import load_records

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _tokenize_source(args, config):
    preprocessor = TextPreprocessor(
        stop_words=[] if args.keep_stop_words else None,
        stop_words_path=args.stop_words or config.get("stop_words_path"),
    )
    loaded = load_records(
        args.source,
        columns=config.get("columns"),
        timestamp_format=config.get("timestamp_format", "%m/%d/%Y %H:%M"),
    )
    return preprocessor.tokenize_records(loaded.records).tokens


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Incident Sentiment NLP Utilities - Tokenization and Word Counts"
    )
    parser.add_argument("--config", type=Path, help="Alternate pipeline YAML file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Tokenize command
    tokenize_parser = subparsers.add_parser(
        "tokenize", help="Split text into tokens with stop words removed"
    )
    tokenize_parser.add_argument("text", help="Text to tokenize")
    tokenize_parser.add_argument(
        "--stop-words", type=Path, help="Path to extra stop-word file"
    )
    tokenize_parser.add_argument(
        "--keep-stop-words",
        action="store_true",
        help="Do not remove the default stop words",
    )

    # Count words command
    count_parser = subparsers.add_parser(
        "count-words", help="Most frequent words in a record source"
    )
    count_parser.add_argument("source", type=Path, help="CSV file of notification records")
    count_parser.add_argument(
        "--by", nargs="+", help="Group counts by these token columns (e.g. category)"
    )
    count_parser.add_argument(
        "--top", type=int, default=20, help="Words to show per group (default: 20)"
    )
    count_parser.add_argument(
        "--stop-words", type=Path, help="Path to extra stop-word file"
    )
    count_parser.add_argument(
        "--keep-stop-words",
        action="store_true",
        help="Do not remove the default stop words",
    )

    # Coverage command
    coverage_parser = subparsers.add_parser(
        "coverage", help="Share of tokens each lexicon can score"
    )
    coverage_parser.add_argument("source", type=Path, help="CSV file of notification records")
    coverage_parser.add_argument(
        "--lexicon", action="append", help="Lexicon name (repeatable, default: all)"
    )
    coverage_parser.add_argument(
        "--stop-words", type=Path, help="Path to extra stop-word file"
    )
    coverage_parser.add_argument(
        "--keep-stop-words",
        action="store_true",
        help="Do not remove the default stop words",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_pipeline_config(args.config)

        if args.command == "tokenize":
            preprocessor = TextPreprocessor(
                stop_words=[] if args.keep_stop_words else None,
                stop_words_path=args.stop_words or config.get("stop_words_path"),
            )
            print(" ".join(preprocessor.tokenize(args.text)))

        elif args.command == "count-words":
            tokens = _tokenize_source(args, config)
            counts = count_words(tokens, by=args.by, top_n=args.top)
            print(counts.to_string(index=False))

        elif args.command == "coverage":
            tokens = _tokenize_source(args, config)
            specs = config.get("lexicons", {})
            if args.lexicon:
                unknown = sorted(set(args.lexicon) - set(specs))
                if unknown:
                    raise ValueError(f"Unknown lexicons: {unknown}")
                specs = {name: specs[name] for name in args.lexicon}

            print("=== Lexicon Coverage ===")
            for name, lexicon in load_lexicons(specs).items():
                print(f"  {name} ({lexicon.kind}): {lexicon_coverage(tokens, lexicon):.1%}")

    except (FileNotFoundError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
