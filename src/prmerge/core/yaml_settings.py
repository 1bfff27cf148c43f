"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

APP_NAME = "prmerge"

# Bootstrap logger, created lazily to avoid a circular import
_bootstrap_logger = None


def _get_bootstrap_logger():
    """Logger used while configuration is still being loaded."""
    global _bootstrap_logger
    if _bootstrap_logger is None:
        from prmerge.core.log import Logger
        _bootstrap_logger = Logger()
        _bootstrap_logger.setup(log_root=Path.home(), run_name="bootstrap")
    return _bootstrap_logger


def _cleanup_bootstrap_logger():
    global _bootstrap_logger
    if _bootstrap_logger:
        _bootstrap_logger.close()
        _bootstrap_logger = None


def _cli_includes(argv: list[str]) -> list[str]:
    """Collect the values of every --include argument."""
    includes = []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--include":
            value = next(args, None)
            if value is not None:
                includes.append(value)
        elif arg.startswith("--include="):
            includes.append(arg.split("=", 1)[1])
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: directives and --include.

    Deep merges, lowest priority first: package defaults
    (defaults/default.yaml), the user config file, ./prmerge.yaml and
    any files named with --include on the command line. Every file may
    itself include others with an ``include:`` key.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        includes = _cli_includes(sys.argv)

        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike)) else list(base)
            ) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):
        """Load and deep merge every configuration file that exists.

        Args:
            files: Project config and CLI include path(s)
            deep_merge: Accepted for signature compatibility; files are
                always deep merged

        Returns:
            Deep-merged dictionary of all loaded data
        """
        files_to_load = [
            Path(__file__).parent.parent / "defaults" / "default.yaml",
            Path(user_config_dir(APP_NAME, appauthor=False))
            / f"{APP_NAME}.yaml",
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        for file_path in files_to_load:
            if not file_path.is_file():
                _get_bootstrap_logger().debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )
                continue
            with _get_bootstrap_logger().span(
                "Configuration loading", file=str(file_path)
            ):
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a file and resolve its include: directives.

        Included files are merged underneath the including file, so the
        includer's own keys win.

        Raises:
            ValueError: If a circular include is detected
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            inc_data = self._load_file_recursive(inc_path, visited.copy())
            data = self._deep_merge(inc_data, data)

        return data

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge override into base; override wins."""
        result = base.copy()
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
