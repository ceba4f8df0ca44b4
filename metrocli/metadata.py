# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""App metadata loading and the validated metadata record.

Every app ships a metadata.json at its root describing the app to the
Back Office (name, identifier, version, icons, artwork, ...). This module
reads that file and defines AppMetadata, the immutable record the rest of
the pipeline works with once validation has passed.

Example:
    ```python
    from pathlib import Path
    from metrocli.metadata import load_metadata
    from metrocli.validation import validate_metadata

    metadata = validate_metadata(load_metadata(Path(".")))
    print(metadata.safe_app_id)  # APP_com_example_MyApp
    ```
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

from metrocli.exceptions import ConfigError

METADATA_FILENAME = "metadata.json"


def make_safe_app_id(identifier: str | None) -> str:
    """Derive the bundle's global name from an app identifier.

    Dots and hyphens become underscores and the result is prefixed with
    "APP_". A missing identifier yields plain "APP".

    Example:
        >>> make_safe_app_id("com.example-app")
        'APP_com_example_app'
    """
    if not identifier:
        return "APP"
    return "APP_" + identifier.replace(".", "_").replace("-", "_")


@dataclass(frozen=True)
class AppMetadata:
    """Validated contents of metadata.json.

    Attributes:
        name: Display name of the app.
        identifier: Unique app identifier (also the archive name prefix).
        version: App version string.
        icon: Path of the main icon, relative to the app root.
        external_url: URL of an externally hosted app, if any.
        icons: Named icon paths (default, square, rounded, landscape).
        splash_image: Path of the splash image, if any.
        artwork: Resolution-keyed artwork paths (e.g. "1920x1080").
        raw: The parsed metadata.json mapping, unchanged.
    """

    name: str
    identifier: str
    version: str
    icon: str
    external_url: str | None = None
    icons: dict[str, str] = field(default_factory=dict)
    splash_image: str | None = None
    artwork: dict[str, str] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AppMetadata:
        """Build a record from an already validated mapping."""
        return cls(
            name=data["name"],
            identifier=data["identifier"],
            version=data["version"],
            icon=data["icon"],
            external_url=data.get("externalUrl") or None,
            icons=dict(data.get("icons") or {}),
            splash_image=data.get("splashImage") or None,
            artwork=dict(data.get("artwork") or {}),
            raw=data,
        )

    @property
    def is_externally_hosted(self) -> bool:
        """True when the app is served from externalUrl (no bundle needed)."""
        return bool(self.external_url)

    @property
    def safe_app_id(self) -> str:
        return make_safe_app_id(self.identifier)


def load_metadata(project_dir: Path) -> Any:
    """Read and parse metadata.json from the project directory.

    The parsed value is returned as-is; checking its shape is the job of
    metrocli.validation.validate_metadata.

    Args:
        project_dir: App root directory.

    Returns:
        The parsed JSON document.

    Raises:
        ConfigError: If the file is missing, unreadable, or not valid JSON.
    """
    path = Path(project_dir) / METADATA_FILENAME

    if not path.exists():
        raise ConfigError(f"File not found error occurred while reading {path} file")

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as err:
        raise ConfigError(f"Error occurred while reading {path} file\n\n{err}") from err
    except OSError as err:
        raise ConfigError(f"Error occurred while reading {path} file\n\n{err}") from err
