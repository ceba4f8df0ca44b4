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

"""Staging directory management and asset collection for metrocli.

Everything that ends up in the release archive is first copied into a
staging directory (.tmp by default). The staging directory belongs to the
current run only: it is wiped before a run starts and removed again once the
upload has finished, successfully or not.

What gets staged:

- Always: metadata.json and the static/ folder (icons, artwork)
- Bundled apps only: src/ and the bundle artifacts from the build folder
  (appBundle.js, appBundle.es5.js and their .map files)

Externally hosted apps (metadata.externalUrl set) are served from their own
URL, so only their metadata and static assets are shipped.

Example:
    ```python
    from pathlib import Path
    from metrocli.build.collector import collect_assets, prepare_staging_dir

    staging = prepare_staging_dir(settings.staging_dir)
    collect_assets(Path("."), staging, externally_hosted=False, settings=settings)
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import shutil

from metrocli.build.bundler import bundle_artifacts
from metrocli.config import Settings
from metrocli.exceptions import PackagingError
from metrocli.logging import Logger, get_global_logger
from metrocli.metadata import METADATA_FILENAME

STATIC_DIRNAME = "static"
SOURCE_DIRNAME = "src"


@dataclass
class PackageDescriptor:
    """Paths derived for one publish run.

    Attributes:
        staging_dir: Ephemeral directory whose contents are archived.
        releases_dir: Directory receiving the archive.
        safe_app_id: Bundle global name (APP_ + sanitized identifier).
        archive_path: Set once the archive has been created.
    """

    staging_dir: Path
    releases_dir: Path
    safe_app_id: str
    archive_path: Path | None = None


def remove_staging_dir(staging_dir: Path, logger: Logger | None = None) -> None:
    """Remove the staging directory if it exists."""
    if logger is None:
        logger = get_global_logger()

    if staging_dir.exists():
        shutil.rmtree(staging_dir)
        logger.verbose("STAGE", f"Removed {staging_dir.name} folder")


def prepare_staging_dir(staging_dir: Path, logger: Logger | None = None) -> Path:
    """Start from an empty staging directory.

    Leftovers from an earlier, interrupted run are removed first so they
    cannot end up in the new archive.
    """
    if logger is None:
        logger = get_global_logger()

    remove_staging_dir(staging_dir, logger=logger)
    staging_dir.mkdir(parents=True, exist_ok=True)
    logger.verbose("STAGE", f"Created {staging_dir}")
    return staging_dir


def _copy_required(source: Path, staging_dir: Path, logger: Logger) -> str:
    """Copy a file or folder into staging_dir, failing if it is missing."""
    if not source.exists():
        logger.debug("STAGE", f"{source.name} does not exist in {source.parent}")
        raise PackagingError(f"Could not find {source}")

    dest = staging_dir / source.name
    try:
        if source.is_dir():
            shutil.copytree(source, dest, dirs_exist_ok=True)
            logger.verbose("STAGE", f"  Copied directory: {source.name}/")
        else:
            shutil.copy2(source, dest)
            logger.verbose("STAGE", f"  Copied file: {source.name}")
    except (OSError, shutil.Error) as err:
        raise PackagingError(
            f"Error occurred while copying {source} to {staging_dir.name}\n\n{err}"
        ) from err
    return source.name


def collect_assets(
    project_dir: Path,
    staging_dir: Path,
    *,
    externally_hosted: bool,
    settings: Settings,
    logger: Logger | None = None,
) -> list[str]:
    """Copy the files that make up the release into staging_dir.

    Args:
        project_dir: App root.
        staging_dir: Destination (see prepare_staging_dir).
        externally_hosted: If True, only metadata.json and static/ are
            copied; src/ and the bundles are skipped.
        settings: Effective settings (build folder, sourcemap mode).
        logger: Logger for output. Defaults to the global logger.

    Returns:
        Names of the copied entries, relative to staging_dir.

    Raises:
        PackagingError: If a required file or folder is missing, or a copy
            operation fails.
    """
    if logger is None:
        logger = get_global_logger()

    project_dir = Path(project_dir)
    logger.verbose("STAGE", f"Copying assets to {staging_dir.name}")

    sources = [project_dir / METADATA_FILENAME, project_dir / STATIC_DIRNAME]
    if not externally_hosted:
        sources.append(project_dir / SOURCE_DIRNAME)
        sources.extend(bundle_artifacts(settings))
    else:
        logger.verbose("STAGE", "Externally hosted app, skipping src/ and bundles")

    copied = [_copy_required(source, staging_dir, logger) for source in sources]

    logger.verbose("STAGE", f"[OK] Staged {len(copied)} item(s)")
    return copied
