"""YAML configuration loading and resource query parsing."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import unquote_plus

import yaml
from pydantic import ValidationError

from variantforge.errors import ConfigError
from variantforge.logging import get_logger
from variantforge.models import LoaderConfig

logger = get_logger("config")

SELECTOR_KEYS = ("preset", "presets")


def validate_config_path(path: str | Path) -> Path:
    """Resolve and validate that a config file path exists.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    resolved = Path(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"Config file not found: {resolved}")
    return resolved


def _parse_yaml(path: Path) -> dict:
    """Read and parse a YAML file whose top level must be a mapping.

    Raises:
        ConfigError: If the YAML is malformed or not a mapping.
    """
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}"
        )
    return data


def build_config(data: dict[str, Any]) -> LoaderConfig:
    """Validate a raw mapping into a :class:`LoaderConfig`.

    Raises:
        ConfigError: If a section has the wrong shape or fails validation.
    """
    presets = data.get("presets", {}) or {}
    if not isinstance(presets, dict):
        raise ConfigError(
            f"'presets' section must be a mapping, got {type(presets).__name__}"
        )
    for name, preset in presets.items():
        if not isinstance(preset, dict):
            raise ConfigError(
                f"Preset {name!r} must be a mapping, got {type(preset).__name__}"
            )

    try:
        return LoaderConfig(**{**data, "presets": presets})
    except ValidationError as exc:
        raise ConfigError(f"Invalid loader configuration: {exc}") from exc


def load_config(path: str | Path) -> LoaderConfig:
    """Load and validate the global loader configuration from YAML.

    Expected YAML shape::

        name: "[name].[hash:8].[ext]"
        presets:
          thumbnail:
            format: [webp, png, jpeg]
            density: [1, 2, 3]
            width: 200
            height: 200
          prefetch:
            format: jpeg
            mode: cover
            blur: 100
            inline: true

    Raises:
        FileNotFoundError: If the YAML file doesn't exist.
        ConfigError: If the content is malformed or invalid.
    """
    resolved = validate_config_path(path)
    config = build_config(_parse_yaml(resolved))
    logger.info(
        "Loaded config: %s (%d presets)", resolved.name, len(config.presets)
    )
    return config


def _query_value(raw: str) -> Any:
    value = unquote_plus(raw)
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def parse_query(query: str) -> dict[str, Any]:
    """Parse a resource query string into a mapping.

    ``?{...}`` is read as JSON.  Otherwise pairs are separated by ``&``
    or ``,``: ``key=value`` (``true``/``false`` become booleans), bare
    ``key`` or ``+key`` is ``True``, ``-key`` is ``False`` and
    ``key[]=value`` accumulates a list.

    Raises:
        ConfigError: If the query does not start with ``?`` or holds
            malformed JSON.
    """
    if not query:
        return {}
    if not query.startswith("?"):
        raise ConfigError(f"A valid query string must start with '?': {query!r}")
    body = query[1:]
    if body.startswith("{"):
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Malformed JSON query: {exc}") from exc
        return data

    result: dict[str, Any] = {}
    for part in body.replace(",", "&").split("&"):
        if not part:
            continue
        key, sep, raw = part.partition("=")
        if sep:
            key = unquote_plus(key)
            value = _query_value(raw)
            if key.endswith("[]"):
                result.setdefault(key[:-2], []).append(value)
            else:
                result[key] = value
        elif part.startswith("-"):
            result[unquote_plus(part[1:])] = False
        elif part.startswith("+"):
            result[unquote_plus(part[1:])] = True
        else:
            result[unquote_plus(part)] = True
    return result


def split_query(local: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
    """Split a local query into ``(selector, extra overrides)``.

    ``presets`` takes precedence over ``preset``; the selector is
    ``None`` when neither is present.
    """
    extra = {k: v for k, v in local.items() if k not in SELECTOR_KEYS}
    if local.get("presets"):
        return local["presets"], extra
    if local.get("preset"):
        return local["preset"], extra
    return None, extra


def local_query(resource_query: str, config: LoaderConfig) -> dict[str, Any]:
    """Return the local query, defaulting to every declared preset name."""
    if resource_query:
        return parse_query(resource_query)
    return {"presets": list(config.presets)}
