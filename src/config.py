"""Runtime configuration.

Settings come from built-in defaults, then an optional YAML file, then CLI
flags (highest precedence).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants, RemoveMakeDeps
from errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Effective configuration for one run."""

    aur_rpc_url: str = Constants.AUR_RPC_URL
    aur_git_base: str = Constants.AUR_GIT_BASE
    mirror_raw_base: str = Constants.MIRROR_RAW_BASE
    mirror_git_url: str = Constants.MIRROR_GIT_URL
    http_timeout: float = Constants.REQUEST_TIMEOUT
    http_cache_ttl: float = Constants.HTTP_CACHE_TTL_SEC
    workers: int = Constants.DEFAULT_WORKERS
    build_dir: str = "."
    remove_make_deps: RemoveMakeDeps = RemoveMakeDeps.ASK
    noconfirm: bool = False


def default_config_paths() -> List[str]:
    """Candidate config files, most specific first."""
    paths = []
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        paths.append(os.path.join(xdg, Constants.PROG, Constants.CONFIG_FILENAME))
    paths.append(os.path.join(os.path.expanduser("~"), ".config", Constants.PROG, Constants.CONFIG_FILENAME))
    paths.append(Constants.LOCAL_CONFIG_FILE)
    return paths


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config_file(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the raw config mapping.

    An explicit path must exist and parse; default locations are optional and
    a broken default file is logged and ignored.

    Raises:
        ConfigError: When an explicit path is missing or invalid.
    """
    if path:
        if not os.path.isfile(path):
            raise ConfigError(f"config file not found: {path}")
        try:
            return _read_yaml(path)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read config file {path}: {exc}") from exc

    for candidate in default_config_paths():
        if not os.path.isfile(candidate):
            continue
        try:
            data = _read_yaml(candidate)
        except (OSError, yaml.YAMLError, ConfigError) as exc:
            logger.warning("Ignoring unreadable config file %s: %s", candidate, exc)
            continue
        logger.debug("Loaded config from %s", candidate)
        return data
    return {}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _positive_number(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number") from exc
    if number <= 0:
        raise ConfigError(f"{key} must be positive")
    return number


def _positive_int(value: Any, key: str) -> int:
    number = _positive_number(value, key)
    if not number.is_integer():
        raise ConfigError(f"{key} must be a whole number")
    return int(number)


def settings_from_mapping(data: Dict[str, Any]) -> Settings:
    """Apply a raw config mapping over the defaults.

    Raises:
        ConfigError: On a wrongly typed or out-of-range value.
    """
    settings = Settings()
    aur = _section(data, "aur")
    mirror = _section(data, "mirror")
    http = _section(data, "http")
    update = _section(data, "update")
    build = _section(data, "build")

    if "rpc_url" in aur:
        settings.aur_rpc_url = str(aur["rpc_url"])
    if "git_base" in aur:
        settings.aur_git_base = str(aur["git_base"]).rstrip("/")
    if "raw_base" in mirror:
        settings.mirror_raw_base = str(mirror["raw_base"])
    if "git_url" in mirror:
        settings.mirror_git_url = str(mirror["git_url"])
    if "timeout" in http:
        settings.http_timeout = _positive_number(http["timeout"], "http.timeout")
    if "cache_ttl" in http:
        ttl = http["cache_ttl"]
        # 0 disables the response cache
        settings.http_cache_ttl = 0 if ttl == 0 else _positive_number(ttl, "http.cache_ttl")
    if "workers" in update:
        settings.workers = _positive_int(update["workers"], "update.workers")
    if "dir" in build:
        settings.build_dir = str(build["dir"])
    if "remove_make_deps" in build:
        raw = build["remove_make_deps"]
        if isinstance(raw, bool):
            raw = "always" if raw else "never"
        try:
            settings.remove_make_deps = RemoveMakeDeps(str(raw).lower())
        except ValueError as exc:
            allowed = ", ".join(m.value for m in RemoveMakeDeps)
            raise ConfigError(f"build.remove_make_deps must be one of: {allowed}") from exc
    return settings


def load_settings(args: Any = None) -> Settings:
    """Build effective settings: defaults < YAML file < CLI flags.

    Raises:
        ConfigError: On an invalid config file or value.
    """
    settings = settings_from_mapping(load_config_file(getattr(args, "CONFIG", None)))

    jobs = getattr(args, "JOBS", None)
    if jobs is not None:
        if jobs < 1:
            raise ConfigError("--jobs must be at least 1")
        settings.workers = jobs
    if getattr(args, "NOCONFIRM", False):
        settings.noconfirm = True
    return settings
