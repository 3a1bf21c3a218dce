#!/usr/bin/env python3
"""
topiclab CLI

Entry point for fitting an LDA topic model and for choosing the topic count
by cross-validated held-out perplexity.

Usage:
    python -m topiclab.cli fit --input docs.txt --k 5 --output results/
    python -m topiclab.cli cv --input docs.csv --text-column text --k 2 5 10 --folds 5
    python -m topiclab.cli cv --input docs.txt --config config/default.yaml --workers 4
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from topiclab.src.config import load_config
from topiclab.src.corpus import build_dtm, drop_empty_documents, load_documents
from topiclab.src.cross_validation import CrossValidator, select_k, summarize
from topiclab.src.exceptions import TopicModelError
from topiclab.src.models import DocumentTermMatrix
from topiclab.src.topic_models import TopicModel
from topiclab.src.utils import (
    keywords_to_frame,
    phi_to_frame,
    setup_logging,
    theta_to_frame,
)
from topiclab.src.visualization import plot_log_likelihood_trace, plot_perplexity_by_k

logger = logging.getLogger(__name__)

# CLI flag -> lda config key
LDA_OVERRIDES = ['alpha', 'beta', 'burnin', 'iterations', 'seed']


def _make_output_dir(base: str) -> str:
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    output_dir = os.path.join(base, f'run_{timestamp}')
    os.makedirs(output_dir, exist_ok=True)
    print(f"Output directory: {output_dir}")
    return output_dir


def _load_dtm(args, config: Dict[str, Any]) -> DocumentTermMatrix:
    """Load documents and vectorize them, dropping empty documents."""
    texts, doc_ids = load_documents(args.input, args.text_column, args.id_column)
    dtm = build_dtm(texts, doc_ids, config['vectorizer'])
    dtm, _ = drop_empty_documents(dtm)
    return dtm


def _lda_params(args, config: Dict[str, Any]) -> Dict[str, Any]:
    params = dict(config['lda'])
    for key in LDA_OVERRIDES:
        value = getattr(args, key, None)
        if value is not None:
            params[key] = value
    return params


def cmd_fit(args, config: Dict[str, Any]) -> str:
    """Execute the 'fit' subcommand - fit one LDA model and export theta/phi."""
    dtm = _load_dtm(args, config)

    params = _lda_params(args, config)
    if args.k is not None:
        params['k'] = args.k

    model = TopicModel.lda(**params)
    result = model.fit(dtm)

    output_dir = _make_output_dir(args.output)

    doc_ids = dtm.doc_ids if dtm.doc_ids is not None else [str(i) for i in range(dtm.n_docs)]
    theta_to_frame(result, doc_ids).to_csv(os.path.join(output_dir, 'theta.csv'), index=False)
    phi_to_frame(result, dtm.vocabulary).to_csv(os.path.join(output_dir, 'phi.csv'))
    keywords_to_frame(result).to_csv(os.path.join(output_dir, 'topics.csv'), index=False)
    plot_log_likelihood_trace(result, Path(output_dir))

    print(f"\nFitted {result.n_topics} topics on {dtm.n_docs} documents:")
    for topic_id, keywords in result.topic_keywords.items():
        print(f"  Topic {topic_id}: {', '.join(keywords)}")

    return output_dir


def cmd_cv(args, config: Dict[str, Any]) -> str:
    """Execute the 'cv' subcommand - cross-validate candidate topic counts."""
    dtm = _load_dtm(args, config)

    cv_config = dict(config['cross_validation'])
    if args.folds is not None:
        cv_config['n_folds'] = args.folds
    if args.workers is not None:
        cv_config['max_workers'] = args.workers
    if args.processes:
        cv_config['use_processes'] = True
    k_values = args.k or cv_config['k_values']

    model = TopicModel.lda(**_lda_params(args, config))
    validator = CrossValidator(model, cv_config)
    results = validator.run(dtm, k_values)

    summary = summarize(results)
    best_k = select_k(summary)
    logger.info(f"Selected k={best_k} (lowest mean held-out perplexity)")

    output_dir = _make_output_dir(args.output)
    results.to_csv(os.path.join(output_dir, 'cv_results.csv'), index=False)
    summary.to_csv(os.path.join(output_dir, 'cv_summary.csv'), index=False)
    plot_perplexity_by_k(results, Path(output_dir))

    print("\n" + "=" * 60)
    print("CROSS-VALIDATED PERPLEXITY")
    print("=" * 60)
    print(summary.to_string(index=False))
    print(f"\nBest k: {best_k}")

    return output_dir


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Documents: text file (one per line) or CSV'
    )
    parser.add_argument(
        '--text-column',
        default=None,
        help='CSV column holding document text (default: text)'
    )
    parser.add_argument(
        '--id-column',
        default=None,
        help='CSV column holding document ids'
    )
    parser.add_argument(
        '--output', '-o',
        default='results',
        help='Output directory (default: results)'
    )
    parser.add_argument('--alpha', type=float, default=None, help='Document-topic prior')
    parser.add_argument('--beta', type=float, default=None, help='Topic-term prior')
    parser.add_argument('--burnin', type=int, default=None, help='Burn-in sweeps')
    parser.add_argument('--iterations', type=int, default=None, help='Sampling sweeps after burn-in')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='LDA topic modeling with cross-validated topic-count selection',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fit a 5-topic model
  python -m topiclab.cli fit --input docs.txt --k 5

  # Compare topic counts with 5-fold cross-validation
  python -m topiclab.cli cv --input docs.txt --k 2 5 10 20 --folds 5
        """
    )
    parser.add_argument(
        '--config', '-c',
        default=None,
        help='YAML config file (default: $TOPICLAB_CONFIG, then built-in defaults)'
    )
    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: from config)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    fit_parser = subparsers.add_parser('fit', help='Fit a single LDA model')
    _add_common_arguments(fit_parser)
    fit_parser.add_argument('--k', type=int, default=None, help='Number of topics')
    fit_parser.set_defaults(func=cmd_fit)

    cv_parser = subparsers.add_parser('cv', help='Cross-validate candidate topic counts')
    _add_common_arguments(cv_parser)
    cv_parser.add_argument(
        '--k',
        type=int,
        nargs='+',
        default=None,
        help='Candidate topic counts (default: from config)'
    )
    cv_parser.add_argument('--folds', type=int, default=None, help='Number of folds')
    cv_parser.add_argument('--workers', type=int, default=None, help='Folds scored concurrently')
    cv_parser.add_argument(
        '--processes',
        action='store_true',
        help='Use worker processes instead of threads'
    )
    cv_parser.set_defaults(func=cmd_cv)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    load_dotenv(Path.cwd() / '.env')

    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    setup_logging(
        args.log_level or config['logging']['level'],
        config['logging'].get('file'),
    )

    try:
        return args.func(args, config)
    except TopicModelError as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
