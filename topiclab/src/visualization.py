"""
Visualization for topiclab results.

Generates matplotlib figures from cross-validation tables and fitted models:
    - Perplexity by K: fold means with standard-deviation error bars
    - Log-likelihood trace: joint log p(w|z) over sampling sweeps
"""

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from topiclab.src.cross_validation import summarize
from topiclab.src.models import TopicModelResult

logger = logging.getLogger(__name__)


def plot_perplexity_by_k(results: pd.DataFrame, output_dir: Path) -> Optional[Path]:
    """Create a line chart of held-out perplexity against topic count.

    Each candidate K gets its fold-mean perplexity with a +/- one standard
    deviation error bar; individual fold scores are drawn as faint points.

    Args:
        results: CrossValidator.run() output (k, fold, perplexity, ...).
        output_dir: Path to directory for saving the chart PNG.

    Returns:
        Path to the saved chart, or None if there was nothing to plot.
    """
    if results is None or results.empty:
        logger.warning("No cross-validation results to plot")
        return None

    logger.info("Creating perplexity-by-k chart...")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    summary = summarize(results)

    fig, ax = plt.subplots(figsize=(10, 6))

    ax.scatter(
        results['k'], results['perplexity'],
        color='#1f77b4', alpha=0.3, s=20, label='Folds'
    )
    ax.errorbar(
        summary['k'], summary['perplexity_mean'],
        yerr=summary['perplexity_std'].fillna(0),
        color='#ff7f0e', marker='o', linewidth=2, capsize=4, label='Mean +/- SD'
    )

    ax.set_xlabel('Number of topics (k)', fontsize=12, fontweight='bold')
    ax.set_ylabel('Held-out perplexity', fontsize=12, fontweight='bold')
    ax.set_title('Cross-Validated Perplexity by Topic Count', fontsize=14, fontweight='bold', pad=15)
    ax.set_xticks(summary['k'])

    ax.legend(loc='upper right', fontsize=11, framealpha=0.9)
    ax.grid(True, alpha=0.3, linestyle='--', linewidth=0.5)

    plt.tight_layout()

    chart_path = output_dir / 'perplexity_by_k.png'
    plt.savefig(chart_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Saved perplexity chart to {chart_path}")
    return chart_path


def plot_log_likelihood_trace(result: TopicModelResult, output_dir: Path) -> Optional[Path]:
    """Plot the recorded joint log-likelihood against sweep number."""
    if not result.log_likelihoods:
        logger.warning("No log-likelihood trace recorded (keep=0?) - skipping chart")
        return None

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    iterations, values = zip(*result.log_likelihoods)
    burnin = result.metadata.get('config', {}).get('burnin', 0)

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(iterations, values, color='#1f77b4', marker='.', linewidth=1.5)
    if burnin:
        ax.axvline(burnin, color='grey', linestyle=':', linewidth=1, label='End of burn-in')
        ax.legend(loc='lower right', fontsize=10)

    ax.set_xlabel('Iteration', fontsize=12)
    ax.set_ylabel('log p(w | z)', fontsize=12)
    ax.set_title(f'Gibbs Sampler Trace (k={result.n_topics})', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3, linestyle='--', linewidth=0.5)

    plt.tight_layout()

    chart_path = output_dir / 'log_likelihood_trace.png'
    plt.savefig(chart_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Saved log-likelihood trace to {chart_path}")
    return chart_path
