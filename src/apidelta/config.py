"""Settings read from ``apidelta.yml``."""

# apidelta:domain=config

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from apidelta.graph.differ import DEFAULT_TEXT_DIFF_MIN_LENGTH

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "apidelta.yml"


@dataclass(frozen=True)
class Settings:
    """Tunables of a comparison run."""

    # Strings shorter than this are replaced whole instead of text-diffed.
    text_diff_min_length: int = DEFAULT_TEXT_DIFF_MIN_LENGTH
    # Worker threads for rule evaluation and collection mode (executor default if None).
    max_workers: int | None = None
    # Rule source used when none is given on the command line.
    rules_path: Path | None = None
    document_suffixes: tuple[str, ...] = (".json", ".jsonld", ".yaml", ".yml")


def _positive_int(key: str, value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        logger.warning(
            "Ignoring %s in %s: expected a positive integer, got %r", key, CONFIG_FILENAME, value
        )
        return None
    return value


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from *path* (``./apidelta.yml`` by default).

    Falls back to defaults for a missing file, an unreadable file, or
    invalid keys.  ``rules_path`` is resolved relative to the config file.
    """
    config_path = path if path is not None else Path.cwd() / CONFIG_FILENAME
    if not config_path.is_file():
        return Settings()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", config_path)
        return Settings()

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        logger.warning("%s must be a YAML mapping, using default settings", config_path)
        return Settings()

    known = {f.name for f in fields(Settings)}
    for key in data:
        if key not in known:
            logger.warning("Unknown setting '%s' in %s", key, config_path)

    kwargs: dict[str, object] = {}

    if "text_diff_min_length" in data:
        value = _positive_int("text_diff_min_length", data["text_diff_min_length"])
        if value is not None:
            kwargs["text_diff_min_length"] = value

    if data.get("max_workers") is not None:
        value = _positive_int("max_workers", data["max_workers"])
        if value is not None:
            kwargs["max_workers"] = value

    rules = data.get("rules_path")
    if rules is not None:
        if isinstance(rules, str) and rules.strip():
            kwargs["rules_path"] = config_path.parent / rules
        else:
            logger.warning(
                "Ignoring rules_path in %s: expected a path, got %r", config_path, rules
            )

    suffixes = data.get("document_suffixes")
    if suffixes is not None:
        if isinstance(suffixes, list) and suffixes and all(isinstance(s, str) for s in suffixes):
            kwargs["document_suffixes"] = tuple(
                s.lower() if s.startswith(".") else f".{s.lower()}" for s in suffixes
            )
        else:
            logger.warning(
                "Ignoring document_suffixes in %s: expected a list of suffixes", config_path
            )

    return Settings(**kwargs)  # type: ignore[arg-type]
