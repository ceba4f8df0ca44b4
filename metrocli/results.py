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

"""Public API return types for metrocli.

This module defines dataclasses for return values from public API functions
(packaging and uploading). All dataclasses are frozen (immutable) to prevent
accidental mutation of return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from metrocli.core import publish_app

        result = publish_app(Path("."), api_key="secret")
        print(result.archive_path)  # Attribute access, not dict access
        ```

Note:
    Only public API return types belong in this module. Domain types (like
    AppMetadata or PackageDescriptor) stay next to their related logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PackageResult:
    """Result from packing the staging directory into a release archive.

    Attributes:
        archive_path: Path to the created .tgz file in the releases folder.
        size_mb: Archive size in decimal megabytes.
        staged_files: Paths (relative to the staging directory) that were
            copied into the archive.
    """

    archive_path: Path
    size_mb: float
    staged_files: tuple[str, ...]


@dataclass(frozen=True)
class UploadResult:
    """Result from uploading a release archive to the Back Office.

    Attributes:
        app_id: App identifier sent as the "id" form field.
        version: App version sent as the "version" form field.
        archive_path: Path to the uploaded archive.
        size_mb: Archive size in decimal megabytes.
        user_type: Account type the upload endpoint was chosen for.
        status: Always "success" for a completed upload.
    """

    app_id: str
    version: str
    archive_path: Path
    size_mb: float
    user_type: str
    status: str
