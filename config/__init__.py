"""
Configuration Management Module

This module handles environment variables, configuration files,
and settings for the incident sentiment pipeline.
"""

__version__ = "0.1.0"
__author__ = "Incident Sentiment Team"

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = CONFIG_DIR / "pipeline.yml"
DEFAULT_LEXICON_DIR = CONFIG_DIR / "lexicons"


def load_pipeline_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load pipeline configuration from pipeline.yml and apply environment overrides.

    Args:
        path: Optional path to an alternate YAML file. Falls back to the
            SENTIMENT_CONFIG environment variable, then the bundled file.

    Returns:
        Dictionary containing pipeline configuration data
    """
    config_path = Path(path or os.getenv("SENTIMENT_CONFIG") or DEFAULT_CONFIG_PATH)

    if not config_path.exists():
        raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Pipeline configuration must be a mapping: {config_path}")

    config.setdefault("timestamp_format", "%m/%d/%Y %H:%M")
    config.setdefault("columns", {})
    config.setdefault("lexicons", {})
    config.setdefault("group_by", ["record_id"])
    config.setdefault("alpha", 0.05)
    config.setdefault("stop_words_path", None)

    timestamp_format = get_timestamp_format()
    if timestamp_format:
        config["timestamp_format"] = timestamp_format

    alpha = get_alpha()
    if alpha is not None:
        config["alpha"] = alpha

    stop_words_path = get_stop_words_path()
    if stop_words_path:
        config["stop_words_path"] = stop_words_path

    lexicon_dir = get_lexicon_dir()
    for lexicon in config["lexicons"].values():
        lexicon_path = Path(lexicon["path"])
        if not lexicon_path.is_absolute():
            lexicon["path"] = str(lexicon_dir / lexicon_path)

    return config


def get_lexicon_dir() -> Path:
    """Get the directory relative lexicon paths are resolved against."""
    return Path(os.getenv("SENTIMENT_LEXICON_DIR", str(DEFAULT_LEXICON_DIR)))


def get_stop_words_path() -> Optional[str]:
    """Get an extra stop-word file from environment."""
    return os.getenv("SENTIMENT_STOP_WORDS")


def get_timestamp_format() -> Optional[str]:
    """Get timestamp format override from environment."""
    return os.getenv("SENTIMENT_TIMESTAMP_FORMAT")


def get_alpha() -> Optional[float]:
    """Get significance level override from environment."""
    value = os.getenv("SENTIMENT_ALPHA")
    if value is None:
        return None
    try:
        alpha = float(value)
    except ValueError:
        raise ValueError(f"SENTIMENT_ALPHA must be a number, got {value!r}")
    if not 0 < alpha < 1:
        raise ValueError(f"SENTIMENT_ALPHA must be between 0 and 1, got {alpha}")
    return alpha
