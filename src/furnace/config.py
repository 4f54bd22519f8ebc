"""Project configuration read from ``.furnacerc.toml``."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from furnace.axes import PartialAxisSelection
from furnace.errors import ConfigError
from furnace.filters import DEFAULT_BUILD_DIRS, PathFilter

logger = logging.getLogger(__name__)

CONFIG_FILE = ".furnacerc.toml"


@dataclass
class ComplexityLints:
    max_args: int | None = None
    max_fields: int | None = None
    max_function_lines: int | None = None


@dataclass
class NamingLints:
    enforce_snake_case_functions: bool = False
    enforce_snake_case_variables: bool = False
    enforce_pascal_case_types: bool = False
    discouraged_names: list[str] = field(default_factory=list)


@dataclass
class LintConfig:
    """Lint rules; every rule is off until configured."""

    enabled: bool = True
    complexity: ComplexityLints = field(default_factory=ComplexityLints)
    naming: NamingLints = field(default_factory=NamingLints)


@dataclass
class OutputConfig:
    preset: str | None = None
    layout: str | None = None
    detail: str | None = None
    color: str | None = None
    symbols: str | None = None

    def overrides(self) -> PartialAxisSelection:
        return PartialAxisSelection(
            layout=self.layout,
            detail=self.detail,
            color=self.color,
            symbols=self.symbols,
        )


@dataclass
class FurnaceConfig:
    ignore: list[str] = field(default_factory=list)
    build_dirs: list[str] = field(default_factory=lambda: sorted(DEFAULT_BUILD_DIRS))
    workers: int | None = None
    output: OutputConfig = field(default_factory=OutputConfig)
    lints: LintConfig = field(default_factory=LintConfig)

    def path_filter(self) -> PathFilter:
        return PathFilter(build_dirs=self.build_dirs, ignore=self.ignore)


def load_config(project_dir: Path) -> FurnaceConfig:
    """Read ``.furnacerc.toml`` from *project_dir*, falling back to defaults.

    A file that cannot be read or parsed is reported and ignored.
    """
    config_path = project_dir / CONFIG_FILE
    if not config_path.exists():
        return FurnaceConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to parse %s: %s", config_path, e)
        return FurnaceConfig()

    return parse_config(data)


def parse_config(data: dict) -> FurnaceConfig:
    """Build a :class:`FurnaceConfig` from already-parsed TOML data.

    Raises :class:`ConfigError` when a key holds a value of the wrong type.
    """
    output = _table(data, "output")
    lints = _table(data, "lints")
    complexity = _table(lints, "complexity", "lints.")
    naming = _table(lints, "naming", "lints.")

    workers = _int(data, "workers")
    if workers is not None and workers < 1:
        raise ConfigError(f"workers must be a positive integer, got {workers!r}")

    build_dirs = _str_list(data, "build_dirs")
    return FurnaceConfig(
        ignore=_str_list(data, "ignore") or [],
        build_dirs=build_dirs if build_dirs is not None else sorted(DEFAULT_BUILD_DIRS),
        workers=workers,
        output=OutputConfig(
            **{key: _str(output, key, "output.") for key in _OUTPUT_KEYS}
        ),
        lints=LintConfig(
            enabled=_bool(lints, "enabled", "lints.", default=True),
            complexity=ComplexityLints(
                max_args=_int(complexity, "max_args", "lints.complexity."),
                max_fields=_int(complexity, "max_fields", "lints.complexity."),
                max_function_lines=_int(
                    complexity, "max_function_lines", "lints.complexity."
                ),
            ),
            naming=NamingLints(
                enforce_snake_case_functions=_bool(
                    naming, "enforce_snake_case_functions", "lints.naming."
                ),
                enforce_snake_case_variables=_bool(
                    naming, "enforce_snake_case_variables", "lints.naming."
                ),
                enforce_pascal_case_types=_bool(
                    naming, "enforce_pascal_case_types", "lints.naming."
                ),
                discouraged_names=_str_list(naming, "discouraged_names", "lints.naming.")
                or [],
            ),
        ),
    )


_OUTPUT_KEYS = ("preset", "layout", "detail", "color", "symbols")


def _table(data: dict, key: str, prefix: str = "") -> dict:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{prefix}{key}] must be a table, got {value!r}")
    return value


def _str(data: dict, key: str, prefix: str = "") -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"{prefix}{key} must be a string, got {value!r}")
    return value


def _str_list(data: dict, key: str, prefix: str = "") -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{prefix}{key} must be a list of strings, got {value!r}")
    return list(value)


def _int(data: dict, key: str, prefix: str = "") -> int | None:
    value = data.get(key)
    # bool is an int subclass; `max_args = true` is still a mistake
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise ConfigError(f"{prefix}{key} must be an integer, got {value!r}")
    return value


def _bool(data: dict, key: str, prefix: str = "", *, default: bool = False) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{prefix}{key} must be true or false, got {value!r}")
    return value
