"""Generator configuration loading with precedence resolution.

This module turns a configuration source plus explicit overrides into an
immutable :class:`~sdkforge.models.GeneratorConfig`:

* **Recognised keys** -- exactly :data:`CONFIG_OPTS`. Any other key in the
  source (or the overrides) is reported with a logged warning and ignored.
* **Required keys** -- :data:`REQUIRED_OPTS`. When a required key is absent
  from both the source and the overrides, :func:`load_config` raises
  :class:`~sdkforge.exceptions.ConfigError` naming every missing key.
* **Precedence** -- per key: explicit override > source value > default.
  An override whose value is ``None`` counts as "not given", so CLI flags
  that were not passed fall through to the file.

Sources are JSON documents by convention (``generator-config.json``); YAML
files are accepted by extension. File writes (:func:`save_config` and the
generated SDK files) go through :func:`atomic_write`.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from sdkforge.exceptions import ConfigError
from sdkforge.models import GeneratorConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "generator-config.json"

CONFIG_OPTS = frozenset(
    {
        "connectorName",
        "namespace",
        "resourceNamespaceSuffix",
        "requestNamespaceSuffix",
        "responseNamespaceSuffix",
        "dtoNamespaceSuffix",
        "baseResourceNamespace",
        "fallbackResourceName",
        "specType",
        "outputDir",
        "force",
        "ignoredQueryParams",
        "ignoredBodyParams",
        "extra",
    }
)

REQUIRED_OPTS = ("connectorName", "namespace")

ConfigSource = Union[str, Path, Mapping[str, Any], None]


def load_config(
    source: ConfigSource = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GeneratorConfig:
    """Build a :class:`~sdkforge.models.GeneratorConfig` from a source and overrides.

    Args:
        source: A path to a JSON/YAML config file, an already-parsed mapping,
            or ``None`` to look for ``generator-config.json`` in the current
            directory (an absent default file means an empty source).
        overrides: Values that win over the source, keyed by the same
            camelCase names. ``None`` values are ignored.

    Returns:
        The validated, immutable configuration.

    Raises:
        ConfigError: If required keys are missing, the source cannot be read
            or parsed, or a value fails validation.

    Example::

        config = load_config("generator-config.json", {"outputDir": "./sdk"})
    """
    data = _read_source(source)
    given = {k: v for k, v in (overrides or {}).items() if v is not None}

    unknown = sorted((set(data) | set(given)) - CONFIG_OPTS)
    if unknown:
        logger.warning("Unknown config keys: %s", ", ".join(unknown))

    merged: dict[str, Any] = {}
    for key in CONFIG_OPTS:
        if key in given:
            merged[key] = given[key]
        elif key in data:
            merged[key] = data[key]

    missing = [k for k in REQUIRED_OPTS if merged.get(k) in (None, "")]
    if missing:
        raise ConfigError(f"missing required keys: {', '.join(missing)}")

    try:
        return GeneratorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid generator config: {exc}") from exc


def _read_source(source: ConfigSource) -> dict[str, Any]:
    """Return the raw key/value mapping held by *source*."""
    if source is None:
        default = Path.cwd() / DEFAULT_CONFIG_FILENAME
        if not default.is_file():
            logger.debug("No %s found, using defaults", DEFAULT_CONFIG_FILENAME)
            return {}
        return _read_file(default)

    if isinstance(source, Mapping):
        return dict(source)

    return _read_file(Path(source))


def _read_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to open config file {path}: {exc}") from exc

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {path} must contain an object (got {type(data).__name__})"
        )
    return data


def config_to_dict(config: GeneratorConfig) -> dict[str, Any]:
    """Return the config as a camelCase mapping, as it appears in a config file."""
    return config.model_dump(mode="json", by_alias=True)


def save_config(config: GeneratorConfig, path: Union[str, Path]) -> Path:
    """Write *config* as JSON to *path* atomically.

    Returns:
        The path written.
    """
    target = Path(path)
    atomic_write(target, json.dumps(config_to_dict(config), indent=2) + "\n")
    return target


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename.

    The content goes to a hidden sibling file first, so readers see either
    the old file or the complete new one. The sibling is removed if writing
    fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(data)
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(temp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(temp_name)
        raise
