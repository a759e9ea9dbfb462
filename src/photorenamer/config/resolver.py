"""Merge configuration sources into a validated :class:`RenamerConfig`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import RenamerConfig

ENV_PREFIX = "PHOTORENAMER__"


def resolve_with_precedence(
    *,
    defaults: RenamerConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> RenamerConfig:
    """Layer overrides onto ``defaults``: file, then environment, then CLI.

    Keys may be nested mappings or dotted paths such as ``rename.template``.

    Raises:
        ConfigError: If an override is malformed or the merged values fail
            validation.
    """
    layers: List[Tuple[str, Optional[Mapping[str, Any]]]] = [
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ]
    merged = defaults.model_dump(mode="python")
    for name, layer in layers:
        if layer:
            merged = deep_merge(merged, expand_dotted(layer, source_name=name))

    try:
        return RenamerConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: RenamerConfig) -> Dict[str, str]:
    """Render every leaf setting as a ``PHOTORENAMER__SECTION__KEY`` variable."""
    flat: Dict[str, str] = {}
    stack: List[Tuple[List[str], Any]] = [([], config.model_dump(mode="python"))]
    while stack:
        path, value = stack.pop()
        if isinstance(value, dict):
            for key, child in value.items():
                stack.append((path + [str(key)], child))
            continue
        if isinstance(value, list):
            rendered = yaml.safe_dump(value, default_flow_style=True).strip()
        elif isinstance(value, bool):
            rendered = "true" if value else "false"
        else:
            rendered = "null" if value is None else str(value)
        flat[ENV_PREFIX + "__".join(part.upper() for part in path)] = rendered
    return dict(sorted(flat.items()))


def parse_env(env: Mapping[str, str]) -> Dict[str, Any]:
    """Collect ``PHOTORENAMER__`` variables into a nested override mapping.

    Values are parsed as YAML scalars so ``true`` and ``9`` arrive typed.
    """
    overrides: Dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        assign_path(overrides, path, value, source_name="environment")
    return overrides


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> Dict[str, Any]:
    """Expand dotted keys (``archive.folder_name``) into nested mappings."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: Dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        assign_path(result, key.split("."), value, source_name=source_name)
    return result


def assign_path(target: Dict[str, Any], path: List[str], value: Any, *, source_name: str) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating sections as needed."""
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with an existing value."
            )
        node = child
    leaf = path[-1]
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = deep_merge(node[leaf], value)
    else:
        node[leaf] = value


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``base`` updated recursively with ``overrides``; inputs are untouched."""
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "deep_merge",
    "expand_dotted",
    "flatten_for_env",
    "parse_env",
    "resolve_with_precedence",
]
