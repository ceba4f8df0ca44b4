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

"""Core orchestration for metrocli.

This module provides the publish pipeline behind `metro upload`. Stages run
strictly one after another; each one finishes (successfully, with a tolerated
failure, or by raising) before the next starts:

1. Read metadata.json
2. Validate it against the metadata schema
3. Resolve the API key (option, METRO_API_KEY, or prompt)
4. Install npm dependencies        (skipped for externally hosted apps)
5. Bundle the app                  (skipped for externally hosted apps)
6. Stage metadata, static assets, sources and bundles
7. Pack the staging directory into releases/{identifier}.{version}.tgz
8. Reject archives of 10 MB or more
9. Authenticate and upload the archive

Design Principles:

- Library code raises MetroError subclasses; the CLI formats them
- Tooling failures (steps 4-5) are fatal only in strict mode
- The staging directory is owned by the run: wiped before step 6 and
  removed once the run ends, whatever the outcome
- The release archive is never removed
- Nothing is retried

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from metrocli.core import publish_app

        result = publish_app(Path("."), api_key="my-api-key")
        print(f"Uploaded {result.app_id} v{result.version}")
        ```

"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
from pathlib import Path

import requests

from metrocli.auth import CredentialCache, prompt_api_key, resolve_api_key
from metrocli.build import (
    PackageDescriptor,
    bundle_app,
    check_archive_size,
    collect_assets,
    create_archive,
    install_dependencies,
    prepare_staging_dir,
    remove_staging_dir,
)
from metrocli.config import Settings, load_settings
from metrocli.io import upload_package
from metrocli.logging import Logger, get_global_logger
from metrocli.metadata import AppMetadata, load_metadata
from metrocli.results import PackageResult, UploadResult
from metrocli.validation import validate_metadata

TOTAL_STEPS = 9


def publish_app(
    project_dir: Path,
    *,
    api_key: str | None = None,
    strict: bool = False,
    use_cache: bool = True,
    settings: Settings | None = None,
    prompt: Callable[[str | None], str] = prompt_api_key,
    session: requests.Session | None = None,
    logger: Logger | None = None,
) -> UploadResult:
    """Validate, build, pack and upload the app in project_dir.

    Args:
        project_dir: App root containing metadata.json.
        api_key: API key to use instead of METRO_API_KEY or the prompt.
        strict: Make install/bundle failures fatal. LNG_BUILD_EXIT_ON_FAIL
            (or build.exit_on_fail in metro.yaml) has the same effect.
        use_cache: Use the credential cache to pre-fill the prompt and
            remember the key after a successful upload.
        settings: Pre-loaded settings. Loaded from project_dir if omitted.
        prompt: Function asking for the API key, given the cached default.
        session: requests.Session for the Back Office calls.
        logger: Logger for progress output. Defaults to the global logger.

    Returns:
        UploadResult for the accepted upload.

    Raises:
        ConfigError: If metadata.json is missing, unreadable, or invalid
            (MetadataError), or if settings are invalid.
        ToolingError: If npm/bundling fails in strict mode.
        PackagingError: If a required asset is missing, packing fails, or
            the archive is too large (PackageTooLargeError).
        AuthenticationError: If the API key is missing or rejected.
        UploadError: If the Back Office rejects the upload.
    """
    if logger is None:
        logger = get_global_logger()

    project_dir = Path(project_dir).resolve()

    if settings is None:
        settings = load_settings(project_dir)
    if strict and not settings.exit_on_fail:
        settings = dataclasses.replace(settings, exit_on_fail=True)

    logger.debug("CORE", f"Project directory: {project_dir}")
    logger.debug("CORE", f"Staging directory: {settings.staging_dir}")
    logger.debug("CORE", f"Releases directory: {settings.releases_dir}")

    # 1. Metadata
    logger.step(1, TOTAL_STEPS, "Reading metadata.json...")
    raw_metadata = load_metadata(project_dir)

    logger.step(2, TOTAL_STEPS, "Checking validity of metadata.json...")
    metadata = validate_metadata(raw_metadata, logger=logger)
    logger.verbose("CORE", f"App: {metadata.name} ({metadata.identifier}) v{metadata.version}")

    # 2. Credential
    logger.step(3, TOTAL_STEPS, "Resolving API key...")
    cache = (
        CredentialCache(settings.cache_file, logger=logger)
        if use_cache and settings.cache_credentials
        else None
    )
    key = resolve_api_key(
        metadata.identifier,
        explicit=api_key,
        env_key=settings.api_key,
        cache=cache,
        prompt=prompt,
    )

    # 3. Build (bundled apps only)
    if metadata.is_externally_hosted:
        logger.warning("Detected externally hosted app, skipping build steps")
        logger.step(4, TOTAL_STEPS, "Installing app dependencies... skipped")
        logger.step(5, TOTAL_STEPS, "Bundling app... skipped")
    else:
        logger.step(4, TOTAL_STEPS, "Installing app dependencies...")
        install_dependencies(project_dir, strict=settings.exit_on_fail, logger=logger)

        logger.step(5, TOTAL_STEPS, f"Bundling app using [{settings.bundler}]...")
        bundle_app(project_dir, metadata, settings, logger=logger)

    # 4. Stage, pack, check, upload
    try:
        package = package_app(project_dir, metadata, settings, logger=logger)

        logger.step(9, TOTAL_STEPS, "Uploading package to Metrological Back Office...")
        result = upload_package(
            metadata,
            key,
            package.archive_path,
            base_url=settings.base_url,
            session=session,
            timeout=settings.timeout,
            upload_timeout=settings.upload_timeout,
            logger=logger,
        )
    finally:
        remove_staging_dir(settings.staging_dir, logger=logger)

    if cache is not None:
        cache.put(metadata.identifier, key)

    return result


def package_app(
    project_dir: Path,
    metadata: AppMetadata,
    settings: Settings,
    *,
    logger: Logger | None = None,
) -> PackageResult:
    """Stage the app's files and pack them into a size-checked release archive.

    Runs steps 6-8 of the pipeline. The staging directory is wiped first and
    left in place afterwards; publish_app removes it once the upload is done.

    Args:
        project_dir: App root containing metadata.json.
        metadata: Validated app metadata.
        settings: Loaded settings (staging/releases/build folders).
        logger: Logger for progress output. Defaults to the global logger.

    Returns:
        PackageResult with the archive path, its size and the staged entries.

    Raises:
        PackagingError: If a required asset is missing or packing fails.
        PackageTooLargeError: If the archive is 10 MB or larger.
    """
    if logger is None:
        logger = get_global_logger()

    descriptor = PackageDescriptor(
        staging_dir=settings.staging_dir,
        releases_dir=settings.releases_dir,
        safe_app_id=metadata.safe_app_id,
    )

    prepare_staging_dir(descriptor.staging_dir, logger=logger)

    logger.step(6, TOTAL_STEPS, f'Copying assets to "{descriptor.staging_dir.name}"...')
    staged = collect_assets(
        project_dir,
        descriptor.staging_dir,
        externally_hosted=metadata.is_externally_hosted,
        settings=settings,
        logger=logger,
    )

    logger.step(7, TOTAL_STEPS, "Creating release package...")
    descriptor.archive_path = create_archive(
        descriptor.staging_dir, metadata, descriptor.releases_dir, logger=logger
    )

    logger.step(8, TOTAL_STEPS, "Checking release package size...")
    size_mb = check_archive_size(descriptor.archive_path, logger=logger)

    return PackageResult(
        archive_path=descriptor.archive_path,
        size_mb=size_mb,
        staged_files=tuple(staged),
    )
