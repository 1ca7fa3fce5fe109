"""
CLI Interface for the Sentiment Analytics Module

Provides command-line access to sentiment aggregation and group comparison.
"""

import argparse
import logging
import sys
from pathlib import Path

from config import load_pipeline_config
from nlp.lexicons import CATEGORICAL, join_lexicon

from .aggregator import GROUP_KEYS
from .comparator import ComparisonError, compare_counts, compare_means
from .pipeline import SentimentPipeline


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


def _joined_tokens(args):
    """Load, tokenize and join the source against the requested lexicon."""
    pipeline = SentimentPipeline(config=load_pipeline_config(args.config))
    loaded = pipeline.load(args.source)
    tokenized = pipeline.preprocessor.tokenize_records(loaded.records)
    lexicon = pipeline.get_lexicon(args.lexicon)
    joined = join_lexicon(tokenized.tokens, lexicon)

    excluded = loaded.excluded_count + tokenized.excluded_count
    if excluded:
        print(f"⚠️  Excluded {excluded} records with missing fields")

    return pipeline, lexicon, joined


def _emit(df, output):
    if output:
        df.to_csv(output, index=False)
        print(f"💾 Wrote {len(df)} rows to {output}")
    else:
        print(df.to_string(index=False))


def run_sentiment(args):
    """Compute categorical label proportions (or a wide count table)."""
    try:
        pipeline, lexicon, joined = _joined_tokens(args)
        if lexicon.kind != CATEGORICAL:
            print(f"❌ Lexicon '{lexicon.name}' is numeric; use the polarity command")
            return 1

        if args.pivot:
            result = pipeline.aggregator.pivot_counts(
                joined, args.group_by, fill_missing=not args.no_fill
            )
        else:
            result = pipeline.aggregator.category_proportions(joined, args.group_by)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Sentiment aggregation failed: {e}")
        return 1

    _emit(result, args.output)
    return 0


def run_polarity(args):
    """Compute numeric polarity statistics."""
    try:
        pipeline, lexicon, joined = _joined_tokens(args)
        if lexicon.kind == CATEGORICAL:
            print(f"❌ Lexicon '{lexicon.name}' is categorical; use the sentiment command")
            return 1

        result = pipeline.aggregator.polarity_stats(joined, args.group_by)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Polarity aggregation failed: {e}")
        return 1

    _emit(result, args.output)
    return 0


def run_comparison(args):
    """Compare two categories by label count or mean polarity."""
    try:
        pipeline, lexicon, joined = _joined_tokens(args)
        alpha = pipeline.config.get("alpha", 0.05)

        if lexicon.kind == CATEGORICAL:
            counts = pipeline.aggregator.record_label_counts(joined, args.label)
            results = [compare_counts(counts, "n", "category", groups=args.groups, alpha=alpha)]
        else:
            polarity = pipeline.aggregator.record_polarity(joined)
            results = list(compare_means(polarity, "mean", "category", groups=args.groups, alpha=alpha))
    except (FileNotFoundError, ValueError, ComparisonError) as e:
        print(f"❌ Comparison failed: {e}")
        return 1

    for result in results:
        low, high = result.conf_int
        print(f"📏 {result.method}: {result.comparison_group} vs {result.reference_group}")
        print(f"   Estimate: {result.estimate:.4f} (SE {result.std_error:.4f})")
        print(f"   {1 - result.alpha:.0%} CI: [{low:.4f}, {high:.4f}]")
        print(f"   p-value: {result.p_value:.4g} {'✅ significant' if result.significant else '➖ not significant'}")
        if result.method == "poisson":
            print(f"   Rate ratio: {result.rate_ratio:.3f}")

    return 0


def run_pipeline(args):
    """Run the complete pipeline and print a summary."""
    pipeline = SentimentPipeline(config=load_pipeline_config(args.config))

    print(f"🚀 Starting sentiment pipeline...")
    print(f"   📄 Source: {args.source}")
    print(f"   📚 Lexicon: {args.lexicon}")
    print(f"   🧮 Group by: {', '.join(args.group_by)}")

    result = pipeline.run(
        args.source,
        lexicon_name=args.lexicon,
        group_by=args.group_by,
        compare_groups=args.groups,
        compare_label=args.label,
    )

    if not result['success']:
        print(f"❌ Sentiment pipeline failed: {result['error']}")
        return 1

    print("✅ Sentiment pipeline completed successfully!")
    print(f"   📊 Records loaded: {result['records_loaded']}")
    print(f"   🚫 Records excluded: {result['records_excluded']}")
    print(f"   🔤 Tokens: {result['tokens']}")
    print(f"   🔗 Joined tokens: {result['joined_tokens']} ({result['coverage']:.1%} coverage)")
    print(f"   📈 Aggregate rows: {len(result['aggregates'])}")

    comparison = result['comparison']
    if comparison is not None:
        print(
            f"   📏 {comparison.method}: estimate {comparison.estimate:.4f}, "
            f"p={comparison.p_value:.4g}"
        )

    if args.output:
        _emit(result['aggregates'], args.output)

    if result.get('comparison_error'):
        print(f"⚠️  Comparison skipped: {result['comparison_error']}")
        return 1

    return 0


def _add_common_arguments(parser, default_lexicon):
    parser.add_argument('source', type=Path, help='CSV file of notification records')
    parser.add_argument('--lexicon', default=default_lexicon, help='Configured lexicon name')
    parser.add_argument('--config', type=Path, help='Alternate pipeline YAML file')


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Incident Sentiment Analytics - Aggregation and Group Comparison",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m analytics sentiment notifications.csv --lexicon nrc --group-by category
  python -m analytics sentiment notifications.csv --group-by category hour --pivot
  python -m analytics polarity notifications.csv --lexicon afinn --group-by month
  python -m analytics compare notifications.csv --lexicon nrc --label fear --groups Transportation "Local Mass Transit"
  python -m analytics pipeline notifications.csv --lexicon afinn
        """
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Sentiment command
    sentiment_parser = subparsers.add_parser('sentiment', help='Categorical label proportions per group')
    _add_common_arguments(sentiment_parser, 'bing')
    sentiment_parser.add_argument('--group-by', nargs='+', choices=GROUP_KEYS, default=['record_id'], help='Grouping keys')
    sentiment_parser.add_argument('--pivot', action='store_true', help='Output one count column per label')
    sentiment_parser.add_argument('--no-fill', action='store_true', help='Leave missing label counts empty instead of 0')
    sentiment_parser.add_argument('--output', '-o', type=Path, help='Write result to CSV')

    # Polarity command
    polarity_parser = subparsers.add_parser('polarity', help='Numeric polarity statistics per group')
    _add_common_arguments(polarity_parser, 'afinn')
    polarity_parser.add_argument('--group-by', nargs='+', choices=GROUP_KEYS, default=['record_id'], help='Grouping keys')
    polarity_parser.add_argument('--output', '-o', type=Path, help='Write result to CSV')

    # Compare command
    compare_parser = subparsers.add_parser('compare', help='Compare two categories')
    _add_common_arguments(compare_parser, 'afinn')
    compare_parser.add_argument('--groups', nargs=2, metavar=('REFERENCE', 'COMPARISON'), help='Categories to compare')
    compare_parser.add_argument('--label', default='negative', help='Label counted per record for categorical lexicons')

    # Pipeline command (combined)
    pipeline_parser = subparsers.add_parser('pipeline', help='Run complete sentiment pipeline')
    _add_common_arguments(pipeline_parser, 'bing')
    pipeline_parser.add_argument('--group-by', nargs='+', choices=GROUP_KEYS, default=['record_id', 'category'], help='Grouping keys')
    pipeline_parser.add_argument('--groups', nargs=2, metavar=('REFERENCE', 'COMPARISON'), help='Categories to compare')
    pipeline_parser.add_argument('--label', default='negative', help='Label counted per record for categorical lexicons')
    pipeline_parser.add_argument('--output', '-o', type=Path, help='Write aggregates to CSV')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    # Setup logging
    setup_logging(args.verbose)

    # Execute command
    if args.command == 'sentiment':
        return run_sentiment(args)
    elif args.command == 'polarity':
        return run_polarity(args)
    elif args.command == 'compare':
        return run_comparison(args)
    elif args.command == 'pipeline':
        return run_pipeline(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
