"""
Pytest configuration and shared fixtures for metrocli tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
import json
from pathlib import Path
from typing import Any

import pytest

from metrocli.config import Settings, load_settings
from metrocli.logging import SilentLogger


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def valid_metadata() -> dict[str, Any]:
    """
    Provide a minimal valid metadata.json document.

    Returns a bundled (not externally hosted) app.
    """
    return {
        "name": "My App",
        "identifier": "com.example.MyApp",
        "version": "1.0.0",
        "icon": "./static/icon.png",
    }


@pytest.fixture
def make_project(tmp_test_dir: Path, valid_metadata: dict[str, Any]) -> Callable[..., Path]:
    """
    Factory fixture that lays out an app project on disk.

    Usage:
        project = make_project()                       # bundled app
        project = make_project(external=True)          # externally hosted
        project = make_project(metadata={...})         # custom metadata
        project = make_project(bundles=False)          # no build/ output
    """

    def _make(
        metadata: Any = None,
        *,
        external: bool = False,
        bundles: bool = True,
        sourcemaps: bool = True,
    ) -> Path:
        project = tmp_test_dir / "app"
        project.mkdir(exist_ok=True)

        data = dict(valid_metadata) if metadata is None else metadata
        if external and isinstance(data, dict):
            data["externalUrl"] = "https://apps.example.com/my-app"
        (project / "metadata.json").write_text(json.dumps(data), encoding="utf-8")

        static = project / "static"
        static.mkdir(exist_ok=True)
        (static / "icon.png").write_bytes(b"\x89PNG fake icon")

        src = project / "src"
        src.mkdir(exist_ok=True)
        (src / "index.js").write_text("export default () => {}\n", encoding="utf-8")

        if bundles:
            build = project / "build"
            build.mkdir(exist_ok=True)
            for name in ("appBundle.js", "appBundle.es5.js"):
                (build / name).write_text("var APP = {};\n", encoding="utf-8")
                if sourcemaps:
                    (build / f"{name}.map").write_text("{}", encoding="utf-8")

        return project

    return _make


@pytest.fixture
def make_settings(tmp_test_dir: Path) -> Callable[..., Settings]:
    """
    Factory fixture returning Settings for a project, isolated from the
    real environment and with the credential cache inside tmp_test_dir.
    """

    def _make(project_dir: Path, environ: dict[str, str] | None = None, **overrides: Any) -> Settings:
        settings = load_settings(project_dir, environ=environ or {})
        settings = dataclasses.replace(
            settings, cache_file=tmp_test_dir / "cache" / "credentials.json"
        )
        if overrides:
            settings = dataclasses.replace(settings, **overrides)
        return settings

    return _make


@pytest.fixture
def silent_logger() -> SilentLogger:
    """Provide a logger that prints nothing."""
    return SilentLogger()


@pytest.fixture
def login_ok() -> dict[str, Any]:
    """Provide a successful login-status response body."""
    return {"securityContext": [{"id": 1, "type": "developer"}]}
