"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for fingerbank:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.fingerbank/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~fingerbank.models.GlobalConfig`
  JSON file storing the API key source, base URL, request, cache and
  output settings.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  effective configuration.
* **Credential resolution** -- :func:`resolve_credential` reads the API key
  from an env var, a file, or an interactive prompt.

Config writes go through :func:`_atomic_write` (temp file, fsync, rename)
so an interrupted ``fingerbank config set`` never leaves a truncated file.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, NamedTuple, Optional

from fingerbank.exceptions import ConfigError
from fingerbank.models import GlobalConfig

_APP_NAME = "fingerbank"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "fingerbank.json"

ENV_BASE_URL = "FINGERBANK_BASE_URL"
ENV_API_KEY_SOURCE = "FINGERBANK_API_KEY_SOURCE"


# --- Directory layout ---


class _DirLayout(NamedTuple):
    env_var: str
    xdg_default: tuple[str, ...]
    fallback_subdir: Optional[str]


_LAYOUTS = {
    "config": _DirLayout("XDG_CONFIG_HOME", (".config",), None),
    "cache": _DirLayout("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": _DirLayout("XDG_DATA_HOME", (".local", "share"), "logs"),
}


def _is_xdg_platform() -> bool:
    """Return True on platforms that follow the XDG Base Directory layout (Linux/BSD)."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    """Resolve and create the *kind* directory (``config``, ``cache`` or ``data``)."""
    layout = _LAYOUTS[kind]
    if _is_xdg_platform():
        base = os.environ.get(layout.env_var) or str(Path.home().joinpath(*layout.xdg_default))
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if layout.fallback_subdir:
            path = path / layout.fallback_subdir
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/fingerbank/`` (default ``~/.config/fingerbank/``).
    On macOS/Windows: ``~/.fingerbank/``.
    """
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the on-disk response cache (``responses/``). Safe to delete.

    On Linux/BSD: ``$XDG_CACHE_HOME/fingerbank/`` (default ``~/.cache/fingerbank/``).
    On macOS/Windows: ``~/.fingerbank/cache/``.
    """
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/fingerbank/`` (default ``~/.local/share/fingerbank/``).
    On macOS/Windows: ``~/.fingerbank/logs/``.
    """
    return _app_dir("data")


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* atomically.

    The temporary file lives in the target directory so that ``os.replace``
    is a same-filesystem rename. It is removed if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The stored :class:`~fingerbank.models.GlobalConfig`, or defaults if
        the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    payload = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    _atomic_write(global_config_path(), payload)


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./fingerbank.json``.

    The file holds any subset of the global config keys, e.g.
    ``{"cache": {"ttl_seconds": 600}}``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
    cli_no_cache: bool = False,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``--base-url``, ``--json``/``--plain``, ``--no-cache``)
        2. Environment variables (``FINGERBANK_BASE_URL``,
           ``FINGERBANK_API_KEY_SOURCE``)
        3. Project config (``./fingerbank.json``)
        4. User config (``~/.config/fingerbank/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any config layer is invalid.
    """
    config = load_global_config()

    project = load_project_config()
    if project is not None:
        merged = _deep_merge(config.model_dump(mode="json"), project)
        try:
            config = GlobalConfig.model_validate(merged)
        except ValueError as exc:
            raise ConfigError(f"Invalid project config: {exc}") from exc

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        config.base_url = env_base_url
    env_key_source = os.environ.get(ENV_API_KEY_SOURCE)
    if env_key_source:
        config.api_key_source = env_key_source

    if cli_base_url is not None:
        config.base_url = cli_base_url
    if cli_format is not None:
        config.output.format = cli_format
    if cli_no_cache:
        config.cache.enabled = False

    return config


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve the API key from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts the user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    kind, _, target = source.partition(":")

    if kind == "env" and target:
        value = os.environ.get(target)
        if not value:
            raise ConfigError(f"Environment variable '{target}' is not set (source: {source})")
        return value

    if kind == "file" and target:
        path = Path(target).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for the API key: stdin is not a TTY (source: prompt)")
        return getpass.getpass("Fingerbank API key: ")

    raise ConfigError(f"Unknown credential source format: {source}")
