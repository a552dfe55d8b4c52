"""Discovery and loading of MarkPaper configuration files."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError
import yaml

from .config import DocumentConfig, merge_config, normalise_keys
from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)

CONFIG_FILENAMES: tuple[str, ...] = (
    ".markpaperrc",
    ".markpaperrc.json",
    ".markpaperrc.yaml",
    ".markpaperrc.yml",
    "markpaper.config.json",
    "markpaper.config.yaml",
    "markpaper.config.yml",
)


def default_config() -> DocumentConfig:
    """Return the built-in defaults."""
    return DocumentConfig()


def discover_config(start: Path | None = None) -> Path | None:
    """Return the first configuration file found from ``start`` upwards."""
    directory = (start or Path.cwd()).resolve()
    if directory.is_file():
        directory = directory.parent
    for candidate_dir in (directory, *directory.parents):
        for name in CONFIG_FILENAMES:
            candidate = candidate_dir / name
            if candidate.is_file():
                return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a JSON or YAML configuration file into a mapping."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read configuration file '{path}': {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(raw) if raw.strip() else {}
        else:
            # YAML is a superset of JSON, which covers suffix-less rc files.
            data = yaml.safe_load(raw) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Malformed configuration file '{path}': {exc}") from exc

    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Configuration file '{path}' must contain a mapping, got {type(data).__name__}."
        )
    return dict(data)


def _resolve_relative_paths(data: dict[str, Any], base: Path) -> dict[str, Any]:
    for key in ("css", "output"):
        value = data.get(key)
        if isinstance(value, str) and value and not Path(value).is_absolute():
            data[key] = str(base / value)
    return data


def load_config(
    config_path: Path | str | None = None,
    *,
    search_from: Path | None = None,
) -> DocumentConfig:
    """Return defaults merged with an explicit or discovered configuration file.

    Relative ``css`` and ``output`` entries are resolved against the directory
    holding the configuration file.
    """
    if config_path is not None:
        path = Path(config_path).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {path}")
    else:
        path = discover_config(search_from)
        if path is None:
            logger.debug("No configuration file found, using defaults")
            return default_config()

    logger.debug("Loading configuration from %s", path)
    data = _resolve_relative_paths(read_config_file(path), path.resolve().parent)
    return apply_overrides(default_config(), data, source=str(path))


def apply_overrides(
    config: DocumentConfig,
    overrides: Mapping[str, Any] | None,
    *,
    source: str = "overrides",
) -> DocumentConfig:
    """Merge overrides into ``config`` raising configuration errors on failure."""
    if not overrides:
        return config
    try:
        return merge_config(config, overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {source}: {exc}") from exc


def merge_options(config: DocumentConfig, options: Mapping[str, Any]) -> DocumentConfig:
    """Layer command-line style options over a loaded configuration."""
    return apply_overrides(config, options, source="command-line options")


def nested_overrides(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Build a nested mapping from dotted keys, skipping ``None`` values.

    >>> nested_overrides([("page.margin.top", "3cm"), ("debug", True)])
    {'page': {'margin': {'top': '3cm'}}, 'debug': True}
    """
    result: dict[str, Any] = {}
    for dotted, value in pairs:
        if value is None:
            continue
        cursor = result
        parts = dotted.split(".")
        for part in parts[:-1]:
            cursor = cursor.setdefault(part, {})
        cursor[parts[-1]] = value
    return normalise_keys(DocumentConfig, result)


__all__ = [
    "CONFIG_FILENAMES",
    "apply_overrides",
    "default_config",
    "discover_config",
    "load_config",
    "merge_options",
    "nested_overrides",
    "read_config_file",
]
