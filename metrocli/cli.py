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

"""Command-line interface for metrocli.

This module provides the main CLI entry point for the metro tool.

Commands:

    upload: Validate, build, pack and upload the app to the Metrological
        Back Office

Example:
    Upload the app in the current directory:
        ```bash
        $ metro upload
        ```

    Upload without prompting for the key:
        ```bash
        $ METRO_API_KEY=... metro upload
        ```

    Stop on the first npm/bundler failure:
        ```bash
        $ metro upload --strict
        ```

    Enable debug output:
        ```bash
        $ metro upload --debug
        ```

Exit Codes:

- 0: Success (or no command given)
- 1: Error (validation, tooling, packaging, authentication or upload failure,
  or an unknown command)

Note:
    The CLI uses argparse for command parsing.
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode and dumps environment details.

"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from importlib.metadata import version
import os
from pathlib import Path
import platform
import shutil
import subprocess
import sys

from metrocli.config import get_app_vars
from metrocli.core import publish_app
from metrocli.exceptions import MetroError, UploadError
from metrocli.logging import Logger, get_logger, set_global_logger

UNKNOWN_COMMAND_HINT = "Use metro -h to see a full list of available commands"


def _lng_info() -> tuple[str, str]:
    """Return the Lightning CLI version and path, or "not found"."""
    path = shutil.which("lng")
    if path is None:
        return "not found", "not found"
    try:
        proc = subprocess.run(
            [path, "--version"], capture_output=True, text=True, check=True, timeout=30
        )
    except (OSError, subprocess.SubprocessError):
        return "unknown", path
    return proc.stdout.strip() or "unknown", path


def log_environment(logger: Logger, project_dir: Path) -> None:
    """Dump the details needed to reproduce a run (debug mode only)."""
    lng_version, lng_path = _lng_info()
    logger.debug("ENV", f"Python version: {sys.version.split()[0]}")
    logger.debug("ENV", f"metrocli version: {version('metrocli')}")
    logger.debug("ENV", f"lng version: {lng_version}")
    logger.debug("ENV", f"lng path: {lng_path}")
    logger.debug("ENV", f"Platform: {platform.platform()}")
    logger.debug("ENV", f"Working directory: {Path.cwd()}")
    logger.debug("ENV", f"Project directory: {project_dir}")
    for key, value in sorted(os.environ.items()):
        if key.startswith("LNG_"):
            logger.debug("ENV", f"{key}={value}")
    for key, value in sorted(get_app_vars(os.environ).items()):
        logger.debug("ENV", f"{key}={value}")


def _print_error(err: MetroError, args: argparse.Namespace) -> None:
    if isinstance(err, UploadError) and err.messages:
        for message in err.messages:
            print(f"Error: {message}")
    else:
        print(f"Error: {err}")
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()


def cmd_upload(args: argparse.Namespace) -> int:
    """Handler for 'metro upload' command.

    Validates metadata.json, installs dependencies and bundles the app (unless
    it is externally hosted), packs the release archive, checks its size and
    uploads it to the Metrological Back Office.

    Args:
        args: Parsed command-line arguments containing the project directory,
            API key, strict/cache flags and verbose/debug flags.

    Returns:
        Exit code (0 for success, 1 for failure).

    Note:
        Leaves the archive in the releases folder. The staging folder is
        removed whatever the outcome. Prints progress and results to stdout.

    """
    # Configure global logger
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    project_dir = Path(args.project_dir).resolve()

    if not project_dir.is_dir():
        print(f"Error: Project directory not found: {project_dir}")
        return 1

    if args.debug:
        log_environment(logger, project_dir)

    print(f"Publishing app from: {project_dir}")
    print()

    try:
        result = publish_app(
            project_dir,
            api_key=args.api_key,
            strict=args.strict,
            use_cache=not args.no_cache,
            logger=logger,
        )
    except MetroError as err:
        _print_error(err, args)
        return 1

    # Display results
    print("=" * 70)
    print("UPLOAD RESULTS")
    print("=" * 70)
    print(f"App ID:          {result.app_id}")
    print(f"Version:         {result.version}")
    print(f"Package Path:    {result.archive_path}")
    print(f"Package Size:    {result.size_mb:.2f} MB")
    print(f"Account Type:    {result.user_type}")
    print(f"Status:          {result.status}")
    print("=" * 70)
    print()
    print("[SUCCESS] App uploaded successfully!")

    return 0


COMMANDS = {"upload": cmd_upload}


def build_parser() -> argparse.ArgumentParser:
    """Create the metro argument parser."""
    parser = argparse.ArgumentParser(
        prog="metro",
        description="metro - publish Lightning apps to the Metrological Back Office",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"metro {version('metrocli')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
    )

    # 'upload' command
    parser_upload = subparsers.add_parser(
        "upload",
        help="Upload the app to the Metrological Back Office",
        description="Validate metadata.json, build the app, pack it into a release "
        "archive and upload it to the Metrological Back Office.",
    )
    parser_upload.add_argument(
        "--project-dir",
        default=".",
        help="App directory containing metadata.json (default: current directory)",
    )
    parser_upload.add_argument(
        "--api-key",
        default=None,
        help="Back Office API key (default: METRO_API_KEY or interactive prompt)",
    )
    parser_upload.add_argument(
        "--strict",
        action="store_true",
        help="Stop when installing dependencies or bundling fails",
    )
    parser_upload.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not read or store the API key in the credential cache",
    )
    parser_upload.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser_upload.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )
    parser_upload.set_defaults(func=cmd_upload)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the metro CLI.

    This function is registered as the 'metro' console script in pyproject.toml.
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    parser = build_parser()

    # argparse would exit 2 with a usage error; unknown commands exit 1 with a hint
    if argv and not argv[0].startswith("-") and argv[0] not in COMMANDS:
        print(f"Unknown command: {argv[0]}")
        print(UNKNOWN_COMMAND_HINT)
        sys.exit(1)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    # Call the appropriate command handler
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
