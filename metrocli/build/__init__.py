"""
Release building for metrocli.

This package turns an app checkout into an uploadable release archive:
installing npm dependencies, running the bundler, staging the files that
belong in the release and packing them into releases/{identifier}.{version}.tgz.

Public API:

install_dependencies : function
    Run `npm i` with the tooling failure policy.
bundle_app : function
    Produce appBundle.js and appBundle.es5.js with the configured bundler.
collect_assets : function
    Copy metadata, static assets, sources and bundles into staging.
create_archive : function
    Pack the staging directory into a .tgz archive.
check_archive_size : function
    Reject archives of 10 MB or more.

Example:
    from pathlib import Path
    from metrocli.build import collect_assets, create_archive, check_archive_size

    collect_assets(Path("."), staging, externally_hosted=False, settings=settings)
    archive = create_archive(staging, metadata, settings.releases_dir)
    check_archive_size(archive)
"""

from .bundler import bundle_app
from .collector import (
    PackageDescriptor,
    collect_assets,
    prepare_staging_dir,
    remove_staging_dir,
)
from .packager import archive_filename, check_archive_size, create_archive
from .tooling import install_dependencies

__all__ = [
    "PackageDescriptor",
    "archive_filename",
    "bundle_app",
    "check_archive_size",
    "collect_assets",
    "create_archive",
    "install_dependencies",
    "prepare_staging_dir",
    "remove_staging_dir",
]
