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

"""Release archive creation for metrocli.

This module packs the staging directory into the gzip-compressed tarball
that is uploaded to the Back Office, and enforces the upload size ceiling.

Design Principles:
    - Archives are named {identifier}.{version}.tgz with whitespace replaced
      by underscores
    - Archive entries are relative to the staging directory (metadata.json,
      static/, ... sit at the archive root)
    - Archives are kept in releases/ and never cleaned up by the tool
    - Size is measured in decimal megabytes (1 MB = 1,000,000 bytes) and
      anything at or above 10 MB is rejected

Example:
    Basic usage:
        ```python
        from pathlib import Path
        from metrocli.build.packager import check_archive_size, create_archive

        archive = create_archive(Path(".tmp"), metadata, Path("releases"))
        size_mb = check_archive_size(archive)
        print(f"{archive.name}: {size_mb:.2f} MB")
        ```
"""

from __future__ import annotations

from pathlib import Path
import re
import tarfile

from metrocli.exceptions import PackageTooLargeError, PackagingError
from metrocli.logging import Logger, get_global_logger
from metrocli.metadata import AppMetadata

# Hard upload ceiling, decimal megabytes
MAX_ARCHIVE_SIZE_MB = 10
BYTES_PER_MB = 1_000_000

_WHITESPACE = re.compile(r"\s")


def archive_filename(identifier: str, version: str) -> str:
    """Return the release archive file name for an app version.

    Example:
        >>> archive_filename("com.example.App", "1 2 3")
        'com.example.App.1_2_3.tgz'
    """
    return _WHITESPACE.sub("_", ".".join([identifier, version, "tgz"]))


def create_archive(
    source_dir: Path,
    metadata: AppMetadata,
    releases_dir: Path,
    logger: Logger | None = None,
) -> Path:
    """Compress the contents of source_dir into releases_dir.

    Args:
        source_dir: Staging directory to pack.
        metadata: Validated metadata (identifier and version name the file).
        releases_dir: Output directory, created if missing. An existing
            archive with the same name is overwritten.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        Path to the created .tgz file.

    Raises:
        PackagingError: If the source directory is missing or compression
            fails.
    """
    if logger is None:
        logger = get_global_logger()

    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        raise PackagingError(f"Staging directory not found: {source_dir}")

    filename = archive_filename(metadata.identifier, metadata.version)
    target = Path(releases_dir) / filename

    logger.verbose(
        "PACK", f'Creating release package "{filename}" in "{Path(releases_dir).name}"'
    )

    try:
        Path(releases_dir).mkdir(parents=True, exist_ok=True)
        with tarfile.open(target, "w:gz") as tar:
            for entry in sorted(source_dir.iterdir()):
                tar.add(entry, arcname=entry.name)
                logger.debug("PACK", f"  + {entry.name}")
    except (OSError, tarfile.TarError) as err:
        raise PackagingError(
            f"Error occurred while creating release package\n\n{err}"
        ) from err

    logger.verbose("PACK", f"[OK] Created: {target}")
    return target


def archive_size_mb(archive_path: Path) -> float:
    """Return the archive size in decimal megabytes."""
    return Path(archive_path).stat().st_size / BYTES_PER_MB


def check_archive_size(archive_path: Path, logger: Logger | None = None) -> float:
    """Reject archives that are too large to upload.

    Args:
        archive_path: Archive created by create_archive.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        The archive size in decimal megabytes.

    Raises:
        PackageTooLargeError: If the size is 10 MB (10,000,000 bytes) or more.
    """
    if logger is None:
        logger = get_global_logger()

    size_mb = archive_size_mb(archive_path)
    logger.verbose("PACK", f"Archive size: {size_mb:.2f} MB")

    if size_mb >= MAX_ARCHIVE_SIZE_MB:
        raise PackageTooLargeError(size_mb)

    return size_mb
