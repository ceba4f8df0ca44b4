"""
Settings loading and merging for metrocli.

Settings for a publish run come from three layers, merged with "last wins"
semantics:

1. **Built-in defaults** (DEFAULTS below)
   - Back Office URL, timeouts, folder names, bundler choice

2. **Project configuration** (metro.yaml in the project directory)
   - Optional; lets a project pin its bundler, folders or API host
   - Overrides the built-in defaults

3. **Environment** (process environment plus the project's .env file)
   - LNG_* build switches shared with the Lightning CLI
   - METRO_API_URL / METRO_API_KEY
   - APP_* variables forwarded into the bundle
   - Overrides both layers above; real environment variables win over .env

Merge Behavior
--------------
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced
  - **Scalars**: Overwritten

Path Resolution
---------------
Relative folder settings (build, staging, releases) are resolved against the
project directory, so the tool behaves the same no matter where it is run
from. The credential cache path has "~" expanded.

Error Handling
--------------
- ConfigError: invalid YAML, a non-mapping metro.yaml, an unknown bundler or
  sourcemap mode, a non-numeric timeout
- All errors are chained with "from err" for better debugging

Examples
--------
Basic usage:

    >>> from pathlib import Path
    >>> from metrocli.config import load_settings
    >>> settings = load_settings(Path("."))
    >>> settings.bundler
    'lng'

Testing with an explicit environment:

    >>> settings = load_settings(Path("."), environ={"LNG_BUNDLER": "esbuild"})
    >>> settings.bundler
    'esbuild'
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
import yaml

from metrocli.exceptions import ConfigError

CONFIG_FILENAME = "metro.yaml"
ENV_FILENAME = ".env"

BUNDLERS = ("lng", "rollup", "esbuild")
SOURCEMAP_MODES = ("true", "inline", "false")

# Prefix of environment variables forwarded into the bundle
APP_VAR_PREFIX = "APP_"

DEFAULTS: dict[str, Any] = {
    "api": {
        "base_url": "https://api.metrological.com",
        "timeout": 60,
        "upload_timeout": 300,
    },
    "paths": {
        "build_dir": "build",
        "staging_dir": ".tmp",
        "releases_dir": "releases",
    },
    "build": {
        "bundler": "lng",
        "exit_on_fail": False,
        "sourcemap": "true",
        "minify": False,
        "fail_on_warnings": False,
        "target": "",
    },
    "credentials": {
        "cache": True,
        "cache_file": "~/.metrocli/credentials.json",
    },
}

# Environment variable -> (section, key, is_boolean)
_ENV_OVERRIDES: dict[str, tuple[str, str, bool]] = {
    "LNG_BUILD_EXIT_ON_FAIL": ("build", "exit_on_fail", True),
    "LNG_BUNDLER": ("build", "bundler", False),
    "LNG_BUILD_FOLDER": ("paths", "build_dir", False),
    "LNG_BUILD_SOURCEMAP": ("build", "sourcemap", False),
    "LNG_BUILD_MINIFY": ("build", "minify", True),
    "LNG_BUILD_FAIL_ON_WARNINGS": ("build", "fail_on_warnings", True),
    "LNG_BUNDLER_TARGET": ("build", "target", False),
    "METRO_API_URL": ("api", "base_url", False),
}


# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class Settings:
    """Effective settings for one publish run.

    Attributes:
        project_dir: Absolute path of the app being published.
        base_url: Back Office base URL (no trailing slash).
        timeout: Per-request timeout for authentication, in seconds.
        upload_timeout: Per-request timeout for the upload, in seconds.
        build_dir: Folder the bundler writes appBundle*.js into.
        staging_dir: Ephemeral folder whose contents become the archive.
        releases_dir: Folder that keeps one archive per run.
        bundler: One of "lng", "rollup", "esbuild".
        exit_on_fail: Strict mode; install/bundle failures become fatal.
        sourcemap: One of "true" (external .map files), "inline", "false".
        minify: Force minification (production builds always minify).
        fail_on_warnings: Make rollup fail on warnings.
        target: esbuild target override for the modern bundle.
        cache_credentials: Whether the per-user credential cache is used.
        cache_file: Location of the credential cache.
        api_key: Credential from METRO_API_KEY, if set.
        app_vars: APP_* variables forwarded into the bundle.
    """

    project_dir: Path
    base_url: str
    timeout: int
    upload_timeout: int
    build_dir: Path
    staging_dir: Path
    releases_dir: Path
    bundler: str
    exit_on_fail: bool
    sourcemap: str
    minify: bool
    fail_on_warnings: bool
    target: str
    cache_credentials: bool
    cache_file: Path
    api_key: str | None = None
    app_vars: dict[str, str] = field(default_factory=dict)

    @property
    def writes_sourcemap_files(self) -> bool:
        """True when the bundler writes separate .map files."""
        return self.sourcemap == "true"


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> dict[str, Any]:
    """
    Load an optional YAML mapping; a missing or empty file yields {}.

    Raises:
      ConfigError - for invalid YAML or a document that is not a mapping
    """
    if not p.exists():
        return {}
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{p.name} must be a YAML mapping, got {type(data).__name__}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


# -------------------------------
# Environment
# -------------------------------


def _read_environment(
    project_dir: Path, environ: Mapping[str, str] | None
) -> dict[str, str]:
    """
    Combine the project's .env file with the process environment.

    Variables already present in the environment win over .env, matching
    python-dotenv's default (override=False).
    """
    file_values = {
        k: v
        for k, v in dotenv_values(project_dir / ENV_FILENAME).items()
        if v is not None
    }
    live = os.environ if environ is None else environ
    return {**file_values, **dict(live)}


def _env_overlay(env: Mapping[str, str]) -> dict[str, Any]:
    """Translate LNG_*/METRO_* variables into a settings overlay."""
    overlay: dict[str, Any] = {}
    for name, (section, key, is_boolean) in _ENV_OVERRIDES.items():
        if name not in env:
            continue
        raw = env[name]
        value: Any = raw.strip().lower() == "true" if is_boolean else raw.strip()
        overlay.setdefault(section, {})[key] = value
    return overlay


def get_app_vars(env: Mapping[str, str]) -> dict[str, str]:
    """Return the APP_* variables that are forwarded into the bundle.

    Example:
        >>> get_app_vars({"APP_API_HOST": "x", "HOME": "/root"})
        {'APP_API_HOST': 'x'}
    """
    return {k: v for k, v in env.items() if k.startswith(APP_VAR_PREFIX)}


# -------------------------------
# Normalization
# -------------------------------


def _normalize_sourcemap(value: Any) -> str:
    if value is True:
        return "true"
    if value is False or value is None:
        return "false"
    mode = str(value).strip().lower()
    if mode not in SOURCEMAP_MODES:
        raise ConfigError(
            f"Unsupported sourcemap mode: {value!r}. "
            f"Supported: {', '.join(SOURCEMAP_MODES)}"
        )
    return mode


def _normalize_bundler(value: Any) -> str:
    bundler = str(value or "lng").strip().lower()
    if bundler not in BUNDLERS:
        raise ConfigError(
            f"Unsupported bundler: {value!r}. Supported: {', '.join(BUNDLERS)}"
        )
    return bundler


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{name} must be a number of seconds, got {value!r}") from err


def _resolve(project_dir: Path, raw: str) -> Path:
    p = Path(raw).expanduser()
    return p if p.is_absolute() else (project_dir / p)


# -------------------------------
# Public API
# -------------------------------


def load_settings(
    project_dir: Path,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load the effective settings for publishing the app in project_dir.

    Args:
        project_dir: Directory containing metadata.json (usually the cwd).
        environ: Environment to read instead of os.environ. The project's
            .env file is still read and loses to these values.

    Returns:
        Frozen Settings for the run.

    Raises:
        ConfigError: If metro.yaml is invalid or a setting has an
            unsupported value.
    """
    project_dir = Path(project_dir).resolve()

    file_cfg = _load_yaml_file(project_dir / CONFIG_FILENAME)
    env = _read_environment(project_dir, environ)

    cfg = _deep_merge_dicts(DEFAULTS, file_cfg)
    cfg = _deep_merge_dicts(cfg, _env_overlay(env))

    api = cfg.get("api", {})
    paths = cfg.get("paths", {})
    build = cfg.get("build", {})
    credentials = cfg.get("credentials", {})

    return Settings(
        project_dir=project_dir,
        base_url=str(api.get("base_url", "")).rstrip("/"),
        timeout=_as_int(api.get("timeout"), "api.timeout"),
        upload_timeout=_as_int(api.get("upload_timeout"), "api.upload_timeout"),
        build_dir=_resolve(project_dir, str(paths.get("build_dir") or "build")),
        staging_dir=_resolve(project_dir, str(paths.get("staging_dir") or ".tmp")),
        releases_dir=_resolve(
            project_dir, str(paths.get("releases_dir") or "releases")
        ),
        bundler=_normalize_bundler(build.get("bundler")),
        exit_on_fail=bool(build.get("exit_on_fail")),
        sourcemap=_normalize_sourcemap(build.get("sourcemap")),
        minify=bool(build.get("minify")),
        fail_on_warnings=bool(build.get("fail_on_warnings")),
        target=str(build.get("target") or ""),
        cache_credentials=bool(credentials.get("cache", True)),
        cache_file=Path(str(credentials.get("cache_file"))).expanduser(),
        api_key=env.get("METRO_API_KEY") or None,
        app_vars=get_app_vars(env),
    )
