"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/config.py
YAML configuration loader. Produces a validated Configuration or raises ConfigurationError.

Example config.yaml:
    dryRun: true
    deduplication: /data/.dedup
    safeDelete: true
    trash: /data/.trash
    replaceWithSymlink: true
    roots: [/data/photos, /data/backup]
    inclusions: ['\\.jpe?g$']
    exclusions: ['/\\.git/']
"""

import logging
from pathlib import Path
from typing import Any, Dict, IO, List, Optional, Union

import yaml

from symdedup.core.errors import ConfigurationError
from symdedup.core.models import Configuration
from symdedup.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"

# YAML key -> (Configuration field, expected type)
REQUIRED_KEYS = {
    "dryRun": ("dry_run", bool),
    "deduplication": ("deduplication", str),
    "safeDelete": ("safe_delete", bool),
    "trash": ("trash", str),
    "replaceWithSymlink": ("replace_with_symlink", bool),
    "roots": ("roots", list),
}
OPTIONAL_KEYS = {
    "inclusions": ("inclusions", list),
    "exclusions": ("exclusions", list),
    "metadata": ("metadata", str),
    "maxWorkers": ("max_workers", int),
    "readBufferSize": ("read_buffer_size", (int, str)),
    "fastDigest": ("fast_digest", str),
    "strongDigest": ("strong_digest", str),
}


def load_configuration(path: Union[str, Path] = DEFAULT_CONFIG_FILE) -> Configuration:
    """Read and validate a YAML configuration file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_configuration(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e


def parse_configuration(stream: Union[str, IO[str]]) -> Configuration:
    """
    Parse the first YAML document of a stream into a Configuration.
    Raises:
        ConfigurationError: Malformed YAML, missing keys or wrong value types
    """
    try:
        document = next(iter(yaml.safe_load_all(stream)), None)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed configuration: {e}") from e

    if not isinstance(document, dict):
        raise ConfigurationError("Configuration must be a YAML mapping")

    kwargs: Dict[str, Any] = {}
    for key, (name, expected) in REQUIRED_KEYS.items():
        if key not in document:
            raise ConfigurationError(f"Missing required configuration key: '{key}'")
        kwargs[name] = _check_type(key, document[key], expected)

    for key, (name, expected) in OPTIONAL_KEYS.items():
        value = document.get(key)
        if value is not None:
            kwargs[name] = _check_type(key, value, expected)

    for key in document.keys() - REQUIRED_KEYS.keys() - OPTIONAL_KEYS.keys():
        logger.warning(f"Ignoring unknown configuration key: '{key}'")

    kwargs["roots"] = _string_list("roots", kwargs["roots"])
    for name in ("inclusions", "exclusions"):
        if name in kwargs:
            kwargs[name] = _string_list(name, kwargs[name])

    if isinstance(kwargs.get("read_buffer_size"), str):
        try:
            kwargs["read_buffer_size"] = ConvertUtils.human_to_bytes(kwargs["read_buffer_size"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid readBufferSize: {e}") from e

    return Configuration(**kwargs)


def _check_type(key: str, value: Any, expected) -> Any:
    # bool is a subclass of int; "maxWorkers: true" must still be rejected
    if isinstance(value, bool) and expected is not bool:
        raise ConfigurationError(f"Configuration key '{key}' has invalid value: {value!r}")
    if not isinstance(value, expected):
        raise ConfigurationError(f"Configuration key '{key}' has invalid value: {value!r}")
    return value


def _string_list(key: str, values: Optional[List[Any]]) -> List[str]:
    result = []
    for value in values or []:
        if not isinstance(value, str):
            raise ConfigurationError(f"Configuration key '{key}' must contain only strings, got {value!r}")
        result.append(value)
    return result
