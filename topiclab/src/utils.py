"""Logging setup and DataFrame helpers shared by the CLI and visualization."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from topiclab.src.models import TopicModelResult


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Libraries that log heavily at DEBUG/INFO while we draw charts
NOISY_LOGGERS = ('matplotlib', 'PIL')


class _TopiclabHandler:
    """Marks handlers installed by setup_logging so a later call can replace them."""


class _ConsoleHandler(_TopiclabHandler, logging.StreamHandler):
    pass


class _FileHandler(_TopiclabHandler, logging.FileHandler):
    pass


def setup_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> None:
    """
    Route topiclab logs to the console and, optionally, a log file.

    Safe to call more than once (the CLI does so per invocation): handlers
    from an earlier call are closed and replaced, never stacked.
    """
    level = logging.getLevelName(str(log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if isinstance(h, _TopiclabHandler)]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    handlers: List[logging.Handler] = [_ConsoleHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_FileHandler(log_file))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def theta_to_frame(result: TopicModelResult, doc_ids: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Document x topic proportions, one column per topic."""
    columns = [f"topic_{k}" for k in range(result.n_topics)]
    df = pd.DataFrame(result.theta, columns=columns)
    if doc_ids is not None:
        df.insert(0, "doc_id", list(doc_ids))
    return df


def phi_to_frame(result: TopicModelResult, vocabulary: Sequence[str]) -> pd.DataFrame:
    """Topic x term probabilities indexed by topic, columns are terms."""
    df = pd.DataFrame(result.phi, columns=list(vocabulary))
    df.index.name = "topic"
    return df


def keywords_to_frame(result: TopicModelResult) -> pd.DataFrame:
    """One row per topic: id, size and comma-joined top terms."""
    rows = []
    for topic_id, keywords in result.topic_keywords.items():
        rows.append({
            "topic": topic_id,
            "size": (result.topic_sizes or {}).get(topic_id, 0),
            "keywords": ", ".join(keywords),
        })
    return pd.DataFrame(rows, columns=["topic", "size", "keywords"])
