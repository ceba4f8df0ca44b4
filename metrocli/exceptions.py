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

"""Exception hierarchy for metrocli.

This module defines a custom exception hierarchy that allows library users
to distinguish between the different ways a publish run can fail:

- ConfigError: metadata.json or metro.yaml problems (missing file, bad JSON,
  schema violations)
- PackagingError: staging/archive problems (missing assets, compression
  failures, oversized archives, strict-mode tooling failures)
- NetworkError: Back Office problems (authentication, upload rejections)

All exceptions inherit from MetroError, so the CLI can catch every expected
failure with a single except clause.

Example:
    Catching specific error types:
        ```python
        from pathlib import Path
        from metrocli.core import publish_app
        from metrocli.exceptions import ConfigError, UploadError

        try:
            publish_app(Path("."), api_key="secret")
        except ConfigError as e:
            print(f"Configuration error: {e}")
        except UploadError as e:
            for message in e.messages:
                print(message)
        ```
"""

from __future__ import annotations

__all__ = [
    "MetroError",
    "ConfigError",
    "MetadataError",
    "PackagingError",
    "ToolingError",
    "PackageTooLargeError",
    "NetworkError",
    "AuthenticationError",
    "UploadError",
]


class MetroError(Exception):
    """Base exception for all metrocli errors."""

    pass


class ConfigError(MetroError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - A missing or unreadable metadata.json
    - metadata.json that is not valid JSON
    - An invalid metro.yaml or unsupported environment setting
    """

    pass


class MetadataError(ConfigError):
    """Raised when metadata.json violates the metadata schema.

    Only the first violation is reported.

    Attributes:
        path: Dotted path of the offending field (e.g. "icons.square").
            Empty when the document itself is invalid.
        rule: Human-readable description of the violated rule.
    """

    def __init__(self, path: str, rule: str) -> None:
        self.path = path
        self.rule = rule
        if path:
            message = f'Metadata is invalid: "{path}" {rule}'
        else:
            message = rule
        super().__init__(message)


class PackagingError(MetroError):
    """Raised for packaging/build-related errors.

    This exception is raised when there are problems with:

    - Required assets missing from the project (static/, src/, bundles)
    - Creating the release archive
    - Build tooling failures when strict mode is enabled
    """

    pass


class ToolingError(PackagingError):
    """Raised when npm or the bundler fails and strict mode is enabled.

    Attributes:
        output: Captured diagnostic output of the failed tool.
    """

    def __init__(self, message: str, output: str = "") -> None:
        self.output = output
        super().__init__(message)


class PackageTooLargeError(PackagingError):
    """Raised when the release archive reaches the upload size ceiling.

    Attributes:
        size_mb: Archive size in decimal megabytes.
    """

    def __init__(self, size_mb: float) -> None:
        self.size_mb = size_mb
        super().__init__(
            "Upload File size is greater than 10 MB. "
            "Please make sure the size is less than 10MB"
        )


class NetworkError(MetroError):
    """Raised for errors talking to the Back Office."""

    pass


class AuthenticationError(NetworkError):
    """Raised when the API key cannot be verified."""

    pass


class UploadError(NetworkError):
    """Raised when the Back Office rejects an upload.

    The backend reports errors either as a single code or as a list of
    codes; both are normalized to lists before this exception is raised.

    Attributes:
        codes: Raw error codes returned by the backend.
        messages: Human-readable message for each code (the raw code when
            there is no known translation).
    """

    def __init__(self, codes: list[str], messages: list[str]) -> None:
        self.codes = list(codes)
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))
