"""
YAML configuration for kindle-vocab.

Example ``~/.kindle_vocab/config.yaml``::

    db_path: ~/Documents/kindle/store.db
    export_filename: anki.tsv
    emphasis_tag: b
    log_level: INFO
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from kindle_vocab.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_HOME = Path.home() / ".kindle_vocab"
DEFAULT_CONFIG_PATH = DEFAULT_HOME / "config.yaml"
DEFAULT_DB_PATH = DEFAULT_HOME / "store.db"

CONFIG_ENV = "KINDLE_VOCAB_CONFIG"
DB_ENV = "KINDLE_VOCAB_DB"


@dataclass
class VocabConfig:
    """Runtime settings for the store, export and logging."""
    db_path: Path = DEFAULT_DB_PATH
    export_filename: str = "vocab.tsv"
    emphasis_tag: str = "strong"
    log_level: str = "WARNING"


def load_config(
    source: Union[str, Path, Dict[str, Any], None] = None,
) -> VocabConfig:
    """Load configuration from a YAML file, YAML string, or dictionary.

    Args:
        source: Path to a YAML file, a YAML string, or a parsed mapping.
            When omitted, ``$KINDLE_VOCAB_CONFIG`` is used if set, then
            ``~/.kindle_vocab/config.yaml`` if it exists.

    Returns:
        VocabConfig with ``$KINDLE_VOCAB_DB`` applied on top

    Raises:
        ConfigError: If the YAML is invalid or holds unknown keys
        FileNotFoundError: If a named config file does not exist
    """
    if source is None:
        env_path = os.environ.get(CONFIG_ENV)
        if env_path:
            source = Path(env_path)
        elif DEFAULT_CONFIG_PATH.exists():
            source = DEFAULT_CONFIG_PATH

    if source is None:
        data: Dict[str, Any] = {}
    elif isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or _is_file_path(source):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        logger.debug(f"Reading config from {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = _parse_yaml(f.read())
    else:
        data = _parse_yaml(source)

    config = _build_config(data)
    db_override = os.environ.get(DB_ENV)
    if db_override:
        config.db_path = Path(db_override).expanduser()
    return config


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    # YAML text: several lines, or a "key: value" pair
    if "\n" in s or ": " in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _parse_yaml(text: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1})" if mark else ""
        raise ConfigError(f"Invalid YAML{where}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping (dictionary)")
    return data


def _build_config(data: Dict[str, Any]) -> VocabConfig:
    known = {f.name for f in fields(VocabConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")

    config = VocabConfig()
    if data.get("db_path"):
        config.db_path = Path(str(data["db_path"])).expanduser()
    for key in ("export_filename", "emphasis_tag", "log_level"):
        value: Optional[Any] = data.get(key)
        if value is not None:
            setattr(config, key, str(value))
    config.log_level = config.log_level.upper()
    if not isinstance(logging.getLevelName(config.log_level), int):
        raise ConfigError(f"Unknown log level: {config.log_level}")
    return config
