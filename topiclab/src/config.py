"""
Configuration loading for topiclab.

Settings come from a YAML file deep-merged over DEFAULT_CONFIG. The file
path is taken from the caller, then from the TOPICLAB_CONFIG environment
variable; with neither, the defaults are used as-is.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from topiclab.src.corpus import DEFAULT_VECTORIZER_CONFIG
from topiclab.src.exceptions import InvalidParameterError
from topiclab.src.models import LDAConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TOPICLAB_CONFIG"

DEFAULT_CONFIG = {
    "vectorizer": dict(DEFAULT_VECTORIZER_CONFIG),
    "lda": LDAConfig().to_dict(),
    "cross_validation": {
        "n_folds": 5,
        "k_values": [2, 5, 10, 20],
        "max_workers": 1,
        "use_processes": False,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration, falling back to defaults for anything not set.

    Args:
        path: YAML file path. Defaults to $TOPICLAB_CONFIG when unset.

    Returns:
        Merged configuration dict

    Raises:
        FileNotFoundError: If an explicit path does not exist
        InvalidParameterError: If the YAML top level is not a mapping
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        logger.info("No config file given, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(Path(path)) as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise InvalidParameterError(f"Config file {path} must contain a mapping")

    logger.info(f"Loaded config from: {path}")
    return _deep_merge(DEFAULT_CONFIG, loaded)
