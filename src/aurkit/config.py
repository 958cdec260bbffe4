"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for aurkit:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.aurkit/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Global config** -- A single :class:`~aurkit.models.GlobalConfig`
  JSON file storing request and cache settings.
* **Environment overrides** -- :func:`resolve_config` layers ``AURKIT_*``
  variables over the file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from aurkit.exceptions import ConfigError
from aurkit.models import GlobalConfig

logger = logging.getLogger(__name__)

_APP_NAME = "aurkit"
_CONFIG_FILENAME = "config.json"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/aurkit/`` (default ``~/.config/aurkit/``).
    On macOS/Windows: ``~/.aurkit/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache root directory without creating it.

    The disk cache tier creates the directory (and its per-operation
    subdirectories) itself so that a failure surfaces at construction.

    On Linux/BSD: ``$XDG_CACHE_HOME/aurkit/`` (default ``~/.cache/aurkit/``).
    On macOS/Windows: ``~/.aurkit/cache/``.

    Returns:
        Absolute path to the cache root.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, prefix: Optional[str] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Its name starts
    with *prefix* (default ``.<name>.``) and ends in ``.tmp``. On any
    failure the temp file is removed and the exception propagates; *path*
    is never left partially written.
    """
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=prefix if prefix is not None else f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~aurkit.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Environment overrides ---


def env_timeout() -> Optional[float]:
    """Read ``AURKIT_TIMEOUT`` (seconds). Returns ``None`` if unset or not a positive number."""
    raw = os.environ.get("AURKIT_TIMEOUT", "").strip()
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def env_user_agent() -> Optional[str]:
    """Read ``AURKIT_USER_AGENT``. Empty values count as unset."""
    value = os.environ.get("AURKIT_USER_AGENT", "").strip()
    return value or None


def env_cache_size() -> Optional[int]:
    """Read ``AURKIT_CACHE_SIZE`` as an entry count. Returns ``None`` if unset or invalid."""
    raw = os.environ.get("AURKIT_CACHE_SIZE", "").strip()
    try:
        return int(raw)
    except ValueError:
        return None


def env_cache_disk() -> Optional[bool]:
    """Read ``AURKIT_CACHE_DISK`` as a boolean (``1/true/yes/on`` or ``0/false/no/off``)."""
    raw = os.environ.get("AURKIT_CACHE_DISK", "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return None


def resolve_config() -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. Environment variables (``AURKIT_TIMEOUT``, ``AURKIT_USER_AGENT``,
           ``AURKIT_CACHE_SIZE``, ``AURKIT_CACHE_DISK``)
        2. User config (``~/.config/aurkit/config.json``)
        3. Defaults

    Returns:
        A new :class:`~aurkit.models.GlobalConfig` with overrides applied.
    """
    config = load_global_config()

    request_updates: dict[str, object] = {}
    timeout = env_timeout()
    if timeout is not None:
        request_updates["timeout"] = timeout
    user_agent = env_user_agent()
    if user_agent is not None:
        request_updates["user_agent"] = user_agent

    cache_updates: dict[str, object] = {}
    cache_size = env_cache_size()
    if cache_size is not None:
        cache_updates["memory_cache_size"] = max(cache_size, 1)
    cache_disk = env_cache_disk()
    if cache_disk is not None:
        cache_updates["enable_disk_cache"] = cache_disk

    if request_updates or cache_updates:
        logger.debug(
            "Applying environment overrides: request=%s cache=%s",
            sorted(request_updates), sorted(cache_updates),
        )

    return config.model_copy(
        update={
            "request": config.request.model_copy(update=request_updates),
            "cache": config.cache.model_copy(update=cache_updates),
        }
    )
