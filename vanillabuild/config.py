#!/usr/bin/env python3
"""
Configuration for vanillabuild.

Three layers, later ones winning: the defaults below, one user file
(JSON, TOML or YAML), and VANILLABUILD_<SECTION>_<KEY> environment
variables. BuildConfig is the frozen view the rest of the package uses.
"""

import os
import re
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import logging
import sys

import toml
import yaml

from .exit_codes import ConfigError

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)
logger = logging.getLogger("vanillabuild")

IS_WINDOWS = sys.platform.startswith("win")

CONFIG_DIR_NAME = '.vanillabuild'
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']
ENV_PREFIX = "VANILLABUILD_"


def _read_json(path: Path) -> Dict[str, Any]:
    with open(path, 'r') as f:
        return json.load(f)


def _read_toml(path: Path) -> Dict[str, Any]:
    with open(path, 'rb') as f:
        return tomllib.load(f)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def _write_json(config: Dict[str, Any], path: Path) -> None:
    with open(path, 'w') as f:
        json.dump(config, f, indent=2)
        f.write("\n")


def _write_toml(config: Dict[str, Any], path: Path) -> None:
    with open(path, 'w') as f:
        toml.dump(config, f)


def _write_yaml(config: Dict[str, Any], path: Path) -> None:
    with open(path, 'w') as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)


READERS = {'.json': _read_json, '.toml': _read_toml, '.yaml': _read_yaml, '.yml': _read_yaml}
WRITERS = {'.json': _write_json, '.toml': _write_toml, '.yaml': _write_yaml, '.yml': _write_yaml}


def get_config_path() -> Path:
    """
    Path of the config file to read.

    VANILLABUILD_CONFIG wins when it names an existing file. Otherwise the
    first non-empty config.* in ~/.vanillabuild/ is used, and when there
    is none, ~/.vanillabuild/config.json is returned as the place to save.
    """
    override = os.environ.get('VANILLABUILD_CONFIG')
    if override and Path(override).exists():
        return Path(override)

    config_dir = Path.home() / CONFIG_DIR_NAME
    candidates = [config_dir / name for name in CONFIG_FILENAMES]
    for path in candidates:
        if path.is_file() and path.stat().st_size > 0:
            return path
    return candidates[0]


def check_sections(config: Any, source: str) -> Dict[str, Any]:
    """
    Make sure `config` is a mapping whose known sections are mappings too.

    Raises:
        ConfigError: Naming `source` and the offending section
    """
    if not isinstance(config, dict):
        raise ConfigError(
            f"Invalid configuration in {source}: expected a mapping of sections, "
            f"got {type(config).__name__}"
        )
    for name in get_default_config():
        if name in config and not isinstance(config[name], dict):
            raise ConfigError(
                f"Invalid configuration in {source}: section '{name}' must be a mapping, "
                f"got {type(config[name]).__name__}"
            )
    return config


def load_config() -> Dict[str, Any]:
    """
    Defaults merged with the config file and environment overrides.

    Raises:
        ConfigError: If the file parses but is not shaped like the defaults
    """
    config = get_default_config()
    config_path = get_config_path()

    if config_path.exists():
        reader = READERS.get(config_path.suffix.lower(), _read_json)
        try:
            file_config = reader(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Ignoring unreadable config {config_path}: {e}")
        else:
            config = merge_configs(config, check_sections(file_config, str(config_path)))

    return apply_env_overrides(config)


def split_task_list(value: Any) -> Tuple[str, ...]:
    """
    Task names from a list or from a comma or whitespace separated string.

    Environment overrides and scalar file values arrive as one string.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(name for name in re.split(r"[,\s]+", value) if name)
    return tuple(str(name) for name in value)


def save_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> Path:
    """
    Write `config` in the format given by the file suffix (JSON by default).

    Returns:
        The path written
    """
    config_path = Path(config_path or get_config_path())
    writer = WRITERS.get(config_path.suffix.lower(), _write_json)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        writer(config, config_path)
    except OSError as e:
        logger.error(f"Could not write config to {config_path}: {e}")
        raise
    logger.debug(f"Configuration saved to {config_path}")
    return config_path


def get_default_config() -> Dict[str, Any]:
    return {
        "repository": {
            "uri": "https://github.com/SpongePowered/SpongeVanilla.git",
            "default_branch": "master",
            "remote": "origin",
            "git_timeout": 0,  # seconds, 0 disables
        },
        "workspace": {
            "directory": "SpongeVanilla",
        },
        "build": {
            "error_log": "error.log",
            "artifact_dir": "build/libs",
            "build_task": "build",
            "excluded_tasks": ["checkstyleMain"],
            "ci_setup_task": "setupCIWorkspace",
            "decomp_setup_task": "setupDecompWorkspace",
            "stop_on_failure": True,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge `override_config` into a copy of `base_config`.

    Nested sections are merged key by key; any other value replaces the
    base value outright. Neither argument is modified.
    """
    merged = dict(base_config)
    for key, value in override_config.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


def _coerce_env_value(value: str) -> Any:
    lowered = value.lower()
    if lowered in ('true', 'yes', 'on'):
        return True
    if lowered in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def _match_key(section: Dict[str, Any], parts: List[str]) -> Optional[str]:
    """Longest key of `section` whose underscore-separated words start `parts`."""
    best = None
    for key in section:
        words = key.split('_')
        if parts[:len(words)] == words and (best is None or len(words) > len(best.split('_'))):
            best = key
    return best


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply VANILLABUILD_<SECTION>_<KEY> environment variables in place.

    Keys may contain underscores themselves, so each level takes the
    longest matching key: VANILLABUILD_BUILD_STOP_ON_FAILURE=false sets
    build.stop_on_failure. Variables that match no key are ignored.
    """
    for env_key, raw in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        parts = env_key[len(ENV_PREFIX):].lower().split('_')
        section = config
        while parts:
            key = _match_key(section, parts)
            if key is None:
                break
            parts = parts[len(key.split('_')):]
            if not parts:
                section[key] = _coerce_env_value(raw)
            elif isinstance(section[key], dict):
                section = section[key]
            else:
                break

    return config


def configure_logging(config: Dict[str, Any], verbose: bool = False) -> None:
    """Apply the logging section of the configuration to the package logger."""
    log_config = config.get("logging", {})
    level_name = "DEBUG" if verbose else str(log_config.get("level", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    fmt = log_config.get("format")
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


@dataclass(frozen=True)
class BuildConfig:
    """
    Immutable view of the merged configuration.

    Built once per invocation and handed to every component.
    """
    repository_uri: str = "https://github.com/SpongePowered/SpongeVanilla.git"
    default_branch: str = "master"
    remote: str = "origin"
    git_timeout: Optional[float] = None
    workspace_dir: Path = Path("SpongeVanilla")
    error_log: Path = Path("error.log")
    artifact_subdir: str = "build/libs"
    build_task: str = "build"
    excluded_tasks: Tuple[str, ...] = ("checkstyleMain",)
    ci_setup_task: str = "setupCIWorkspace"
    decomp_setup_task: str = "setupDecompWorkspace"
    stop_on_failure: bool = True
    windows: bool = IS_WINDOWS

    @classmethod
    def from_dict(cls, config: Dict[str, Any], base_dir: Optional[Path] = None) -> 'BuildConfig':
        """
        Build a BuildConfig from a merged configuration dict.

        Relative paths are resolved against base_dir (the current
        working directory when omitted).

        Raises:
            ConfigError: If the dict or one of its sections is not a mapping
        """
        check_sections(config, "configuration")
        defaults = get_default_config()
        repo = merge_configs(defaults["repository"], config.get("repository", {}))
        workspace = merge_configs(defaults["workspace"], config.get("workspace", {}))
        build = merge_configs(defaults["build"], config.get("build", {}))

        base = Path(base_dir) if base_dir else Path.cwd()
        timeout = repo.get("git_timeout") or None

        return cls(
            repository_uri=repo["uri"],
            default_branch=repo["default_branch"],
            remote=repo["remote"],
            git_timeout=float(timeout) if timeout else None,
            workspace_dir=(base / os.path.expanduser(workspace["directory"])).absolute(),
            error_log=(base / os.path.expanduser(build["error_log"])).absolute(),
            artifact_subdir=build["artifact_dir"],
            build_task=build["build_task"],
            excluded_tasks=split_task_list(build.get("excluded_tasks")),
            ci_setup_task=build["ci_setup_task"],
            decomp_setup_task=build["decomp_setup_task"],
            stop_on_failure=bool(build["stop_on_failure"]),
        )

    @property
    def gradle_wrapper(self) -> Path:
        """Absolute path of the Gradle wrapper inside the working copy."""
        name = "gradlew.bat" if self.windows else "gradlew"
        return (self.workspace_dir / name).absolute()

    @property
    def artifact_dir(self) -> Path:
        """Directory the build tool writes its jars to."""
        return self.workspace_dir / self.artifact_subdir

    def to_dict(self) -> Dict[str, Any]:
        return {
            'repository_uri': self.repository_uri,
            'default_branch': self.default_branch,
            'remote': self.remote,
            'git_timeout': self.git_timeout,
            'workspace_dir': str(self.workspace_dir),
            'error_log': str(self.error_log),
            'artifact_dir': str(self.artifact_dir),
            'gradle_wrapper': str(self.gradle_wrapper),
            'stop_on_failure': self.stop_on_failure,
        }
