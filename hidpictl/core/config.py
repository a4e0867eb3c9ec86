"""Settings loading and validation for the YAML config file."""

from __future__ import annotations

import functools
import json
import logging
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path, PurePath
from typing import Any

import yaml
from jsonschema import validators

from hidpictl.core.catalog import parse_size
from hidpictl.core.descriptor import DEFAULT_OVERRIDES_ROOT
from hidpictl.core.errors import ConfigError, FormatError
from hidpictl.core.model import NamedResolution, Size

LOGGER = logging.getLogger(__name__)

DEFAULT_PREFERENCE_DOMAIN = "/Library/Preferences/com.apple.windowserver"


def _without_bool_resolvers(
    resolvers: dict[Any, list[tuple[str, Any]]],
) -> dict[Any, list[tuple[str, Any]]]:
    # "elevation: no" or "owner: yes" must stay strings
    return {
        first_char: [(tag, regexp) for tag, regexp in entries if tag != "tag:yaml.org,2002:bool"]
        for first_char, entries in resolvers.items()
    }


class ConfigLoader(yaml.SafeLoader):
    """Safe loader for config.yaml: no YAML 1.1 booleans, no repeated keys."""

    yaml_implicit_resolvers = _without_bool_resolvers(yaml.SafeLoader.yaml_implicit_resolvers)

    def construct_unique_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        mapping: dict[Any, Any] = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in mapping:
                line = key_node.start_mark.line + 1
                raise ConfigError(f"Setting '{key}' is defined twice (line {line})")
            mapping[key] = self.construct_object(value_node, deep=deep)
        return mapping


ConfigLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    ConfigLoader.construct_unique_mapping,
)


@dataclass(frozen=True)
class Settings:
    overrides_root: PurePath = DEFAULT_OVERRIDES_ROOT
    elevation: str = "osascript"
    owner: str = "root"
    group: str = "wheel"
    file_mode: int = 0o644
    temp_dir: Path | None = None
    preference_domain: str = DEFAULT_PREFERENCE_DOMAIN
    presets: dict[str, tuple[Size, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    source: Path | None
    warnings: tuple[str, ...]


def config_path() -> Path:
    explicit = os.environ.get("HIDPICTL_CONFIG")
    if explicit:
        return Path(explicit)
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "hidpictl/config.yaml"


@functools.lru_cache(maxsize=1)
def _settings_validator() -> Any:
    schema = json.loads(
        resources.files("hidpictl.schemas").joinpath("config.schema.json").read_text(encoding="utf-8")
    )
    return validators.validator_for(schema)(schema)


def _parse_document(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as handle:
            document = yaml.load(handle, Loader=ConfigLoader)
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"Config file {path} must be a mapping of settings")
    return document


def _validate(doc: dict[str, Any], source: Path) -> None:
    errors = sorted(_settings_validator().iter_errors(doc), key=lambda error: list(map(str, error.path)))
    if not errors:
        return
    problems = "; ".join(
        f"{'.'.join(str(p) for p in error.path) or '<root>'}: {error.message}" for error in errors
    )
    raise ConfigError(f"Invalid settings in {source}: {problems}")


def _build_presets(raw: dict[str, list[str]], source: Path) -> dict[str, tuple[Size, ...]]:
    presets: dict[str, tuple[Size, ...]] = {}
    for name, sizes in raw.items():
        try:
            presets[name] = tuple(parse_size(size) for size in sizes)
        except FormatError as exc:
            raise ConfigError(f"Preset '{name}' in {source}: {exc}") from exc
    return presets


def _file_mode(value: str | int) -> int:
    # YAML 1.1 already reads an unquoted 0644 as octal
    if isinstance(value, int):
        return value
    return int(value, 8)


def _build_settings(doc: dict[str, Any], source: Path) -> Settings:
    _validate(doc, source)

    defaults = Settings()
    return Settings(
        overrides_root=PurePath(doc["overrides_root"]) if "overrides_root" in doc else defaults.overrides_root,
        elevation=doc.get("elevation", defaults.elevation),
        owner=doc.get("owner", defaults.owner),
        group=doc.get("group", defaults.group),
        file_mode=_file_mode(doc["file_mode"]) if "file_mode" in doc else defaults.file_mode,
        temp_dir=Path(doc["temp_dir"]) if "temp_dir" in doc else None,
        preference_domain=doc.get("preference_domain", defaults.preference_domain),
        presets=_build_presets(doc.get("presets", {}), source),
    )


def load_settings(path: Path | None = None) -> LoadedSettings:
    source = path or config_path()
    if not source.exists():
        if path is not None:
            raise ConfigError(f"Config file {source} does not exist")
        return LoadedSettings(settings=Settings(), source=None, warnings=())

    settings = _build_settings(_parse_document(source), source)

    builtin_names = {member.value for member in NamedResolution}
    warnings: list[str] = []
    for name in sorted(settings.presets):
        if name in builtin_names:
            warning = f"Preset '{name}' shadows a built-in resolution and is ignored"
            LOGGER.warning(warning)
            warnings.append(warning)
    return LoadedSettings(settings=settings, source=source, warnings=tuple(warnings))
