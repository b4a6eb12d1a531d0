"""Layered configuration resolution."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Callable, Dict, Iterator, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import PassRunnerConfig

ENV_PREFIX = "PASSRUNNER__"

# Variables understood by `pass` itself, mapped onto the `store` section.
STORE_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "PASSWORD_STORE_DIR": ("directory", str),
    "PASSWORD_STORE_CLIP_TIME": ("clip_timeout_seconds", lambda raw: int(raw.strip())),
    "PASSWORD_STORE_OTP_IDENTIFIER": ("otp_identifier", str),
}


def resolve_with_precedence(
    *,
    defaults: PassRunnerConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> PassRunnerConfig:
    """Layer configuration sources over ``defaults`` and validate the result.

    Layers apply in the order file, environment, CLI; a later layer wins for
    every key it sets. Keys may be nested mappings or dotted paths such as
    ``store.command``.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the YAML configuration file.
        env_overrides: Values derived from environment variables.
        cli_overrides: Overrides supplied on the command line.

    Returns:
        PassRunnerConfig: Validated merged configuration.

    Raises:
        ConfigError: If a layer is malformed or the merged data fails validation.
    """
    layers = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    merged = defaults.model_dump(mode="python")
    for origin, layer in layers:
        if layer is not None:
            merged = deep_merge(merged, expand_dotted(layer, origin=origin))

    try:
        return PassRunnerConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_layer(env: Mapping[str, str]) -> dict[str, Any]:
    """Translate environment variables into a nested override mapping.

    ``PASSRUNNER__SECTION__KEY`` values are parsed as YAML literals. The
    ``PASSWORD_STORE_*`` variables are applied on top; an unparseable
    ``PASSWORD_STORE_CLIP_TIME`` is ignored.
    """
    layer: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        layer = deep_merge(layer, _nest(path, value))

    store: dict[str, Any] = {}
    for name, (field, convert) in STORE_ENV_FIELDS.items():
        raw = env.get(name)
        if raw is None or (field == "directory" and not raw):
            continue
        try:
            store[field] = convert(raw)
        except ValueError:
            continue
    if store:
        layer = deep_merge(layer, {"store": store})
    return layer


def flatten_for_env(config: PassRunnerConfig) -> Dict[str, str]:
    """Render ``config`` as ``PASSRUNNER__SECTION__KEY`` environment assignments."""
    return {
        ENV_PREFIX + "__".join(part.upper() for part in path): _render(value)
        for path, value in _leaves(config.model_dump(mode="python"), ())
    }


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``base`` with ``overrides`` merged in recursively."""
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def expand_dotted(source: Mapping[str, Any], *, origin: str) -> dict[str, Any]:
    """Expand dotted keys of ``source`` into nested mappings.

    Raises:
        ConfigError: If ``source`` is not a mapping, a key is not a string, or
            two keys disagree about whether a path holds a mapping.
    """
    label = origin.capitalize()
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{label} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, origin=origin)
        path = key.split(".")
        node = expanded
        for segment in path[:-1]:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(f"{label} override for {key} conflicts with existing value.")
            node = child
        leaf = path[-1]
        if isinstance(value, dict) and isinstance(node.get(leaf), dict):
            node[leaf] = deep_merge(node[leaf], value)
        else:
            node[leaf] = value
    return expanded


def _nest(path: list[str], value: Any) -> dict[str, Any]:
    nested: Any = value
    for segment in reversed(path):
        nested = {segment: nested}
    return nested


def _leaves(value: Any, path: tuple[str, ...]) -> Iterator[tuple[tuple[str, ...], Any]]:
    if isinstance(value, dict):
        for key, child in value.items():
            yield from _leaves(child, path + (str(key),))
    else:
        yield path, value


def _render(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, list):
        return yaml.safe_dump(value, default_flow_style=True).strip()
    return str(value)


__all__ = [
    "ENV_PREFIX",
    "STORE_ENV_FIELDS",
    "deep_merge",
    "env_layer",
    "expand_dotted",
    "flatten_for_env",
    "resolve_with_precedence",
]
