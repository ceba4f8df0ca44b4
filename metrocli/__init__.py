"""
metrocli - Metrological Back Office publishing tool

A Python-based CLI tool for publishing Lightning apps to the Metrological
Back Office app store.

metrocli provides:
  - metadata.json validation against the Back Office metadata schema
  - Dependency install and bundling through npm and lng, rollup or esbuild
  - Release packaging into releases/{identifier}.{version}.tgz
  - A 10 MB size guard before anything is sent
  - API key authentication and upload to the Back Office
  - Optional per-app API key cache

Quick Start
-----------
Upload the app in the current directory:

    $ metro upload

For full CLI documentation:

    $ metro --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level orchestration (publish_app, package_app).
config : package
    Settings from defaults, metro.yaml, .env and the environment.
metadata : module
    metadata.json loading and the AppMetadata type.
validation : module
    JSON-schema validation of metadata.json.
build : package
    npm/bundler invocation, asset staging and archive packing.
auth : package
    Authentication, API key resolution and the credential cache.
io : package
    Upload to the Back Office.

Public API
----------
The primary interface is the CLI, but key functions are exported for
programmatic use:

    from metrocli.core import publish_app, package_app
    from metrocli.validation import validate_metadata
    from metrocli.config import load_settings
    from metrocli.io import upload_package

For more details, see the individual module docstrings.

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Publish Lightning apps to the Metrological Back Office"

# Re-export commonly used functions for convenience
from metrocli.config import load_settings
from metrocli.core import package_app, publish_app
from metrocli.io import upload_package
from metrocli.metadata import AppMetadata, load_metadata
from metrocli.validation import validate_metadata

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "publish_app",
    "package_app",
    "validate_metadata",
    "load_settings",
    "load_metadata",
    "upload_package",
    "AppMetadata",
]
