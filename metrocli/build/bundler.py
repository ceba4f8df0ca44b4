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

"""App bundling for metrocli.

This module invokes the external bundler that turns an app's src/ folder into
the two bundles the Back Office expects:

- appBundle.js: modern (ES6) bundle
- appBundle.es5.js: legacy (ES5) bundle for older set-top boxes

each with its source map when sourcemaps are written to files.

Supported Bundlers (LNG_BUNDLER / build.bundler):

- lng (default): delegates to the Lightning CLI, `lng build --es5 --es6`
- rollup: runs node_modules/.bin/rollup once per target
- esbuild: runs node_modules/.bin/esbuild once per target, forwarding APP_*
  variables as `process.env.*` defines

The bundler is an external tool; this module only builds its command lines
and applies the shared tooling failure policy (see build.tooling).

Example:
    ```python
    from pathlib import Path
    from metrocli.build.bundler import bundle_app
    from metrocli.config import load_settings

    settings = load_settings(Path("."))
    bundle_app(Path("."), metadata, settings)
    ```
"""

from __future__ import annotations

import json
from pathlib import Path

from metrocli.build.tooling import find_tool, run_tool, tool_environment
from metrocli.config import Settings
from metrocli.exceptions import ToolingError
from metrocli.logging import Logger, get_global_logger
from metrocli.metadata import AppMetadata

# Target -> bundle file name inside the build folder
BUNDLE_FILES: dict[str, str] = {
    "es6": "appBundle.js",
    "es5": "appBundle.es5.js",
}


def bundle_artifacts(settings: Settings) -> list[Path]:
    """Return the bundle files (and .map files, when written) for settings."""
    artifacts: list[Path] = []
    for filename in BUNDLE_FILES.values():
        artifacts.append(settings.build_dir / filename)
        if settings.writes_sourcemap_files:
            artifacts.append(settings.build_dir / f"{filename}.map")
    return artifacts


def bundler_variables(settings: Settings) -> dict[str, str]:
    """Environment variables passed to the bundler process.

    The Lightning CLI reads its output folder from LNG_BUILD_FOLDER, so the
    configured build folder is exported for it. rollup and esbuild get the
    folder on their command line instead.
    """
    variables = dict(settings.app_vars)
    if settings.bundler == "lng":
        variables["LNG_BUILD_FOLDER"] = str(settings.build_dir)
    return variables


def entry_file(project_dir: Path) -> str:
    """Return the app entry point, preferring TypeScript when present."""
    if (Path(project_dir) / "src" / "index.ts").exists():
        return "src/index.ts"
    return "src/index.js"


def _rollup_command(
    tool: Path, project_dir: Path, metadata: AppMetadata, settings: Settings, target: str
) -> list[str]:
    cmd = [str(tool)]

    config = Path(project_dir) / f"rollup.{target}.config.js"
    if config.exists():
        cmd += ["-c", str(config)]

    cmd += [
        "--input",
        str(Path(project_dir) / entry_file(project_dir)),
        "--file",
        str(settings.build_dir / BUNDLE_FILES[target]),
        "--format",
        "iife",
        "--name",
        metadata.safe_app_id,
    ]
    if settings.sourcemap == "inline":
        cmd.append("--sourcemap=inline")
    elif settings.sourcemap == "false":
        cmd.append("--no-sourcemap")
    if settings.fail_on_warnings:
        cmd.append("--failAfterWarnings")
    return cmd


def _esbuild_command(
    tool: Path,
    project_dir: Path,
    metadata: AppMetadata,
    settings: Settings,
    target: str,
    minify: bool,
) -> list[str]:
    cmd = [
        str(tool),
        str(Path(project_dir) / entry_file(project_dir)),
        "--bundle",
        "--format=iife",
        f"--global-name={metadata.safe_app_id}",
        f"--outfile={settings.build_dir / BUNDLE_FILES[target]}",
        "--main-fields=browser,module,main",
        "--log-level=warning",
    ]

    if settings.sourcemap == "true":
        cmd.append("--sourcemap")
    elif settings.sourcemap == "inline":
        cmd.append("--sourcemap=inline")

    if minify:
        cmd += ["--minify-whitespace", "--minify-identifiers"]

    if target == "es5":
        cmd.append("--target=es5")
    elif settings.target:
        cmd.append(f"--target={settings.target}")

    defines = {"NODE_ENV": "production", **settings.app_vars}
    for key, value in defines.items():
        cmd.append(f"--define:process.env.{key}={json.dumps(value)}")
    return cmd


def bundle_commands(
    project_dir: Path,
    metadata: AppMetadata,
    settings: Settings,
    *,
    production: bool = True,
) -> list[list[str]]:
    """Build the bundler command line(s) for the configured bundler.

    Args:
        project_dir: App root.
        metadata: Validated app metadata (used for the global name).
        settings: Effective settings (bundler, build folder, sourcemaps).
        production: Production builds are always minified.

    Returns:
        One command for the Lightning CLI, or one per target for
        rollup/esbuild.

    Raises:
        ToolingError: If rollup/esbuild is not installed in node_modules.
    """
    if settings.bundler == "lng":
        return [["lng", "build", "--es5", "--es6"]]

    tool = find_tool(project_dir, f"node_modules/.bin/{settings.bundler}")
    minify = settings.minify or production

    commands = []
    for target in ("es6", "es5"):
        if settings.bundler == "rollup":
            commands.append(
                _rollup_command(tool, project_dir, metadata, settings, target)
            )
        else:
            commands.append(
                _esbuild_command(tool, project_dir, metadata, settings, target, minify)
            )
    return commands


def bundle_app(
    project_dir: Path,
    metadata: AppMetadata,
    settings: Settings,
    *,
    logger: Logger | None = None,
) -> bool:
    """Produce appBundle.js and appBundle.es5.js in the build folder.

    Failures follow the tooling policy: logged with the captured output,
    fatal only when settings.exit_on_fail (strict mode) is set.

    Args:
        project_dir: App root.
        metadata: Validated app metadata.
        settings: Effective settings.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        True if every bundler call succeeded, False on a tolerated failure.

    Raises:
        ToolingError: If bundling fails and strict mode is enabled.
    """
    if logger is None:
        logger = get_global_logger()

    strict = settings.exit_on_fail

    try:
        commands = bundle_commands(project_dir, metadata, settings)
    except ToolingError as err:
        logger.output(f"Error while bundling app using [{settings.bundler}]", str(err))
        if strict:
            raise
        logger.warning(f"{err}; continuing without a fresh bundle")
        return False

    settings.build_dir.mkdir(parents=True, exist_ok=True)
    env = tool_environment(bundler_variables(settings))

    logger.verbose(
        "BUILD", f"Bundling {metadata.safe_app_id} with [{settings.bundler}]"
    )

    ok = True
    for cmd in commands:
        ok = (
            run_tool(
                cmd,
                project_dir,
                description=f"bundling app using [{settings.bundler}]",
                strict=strict,
                env=env,
                logger=logger,
            )
            and ok
        )

    if ok:
        logger.verbose("BUILD", f"[OK] Bundles written to {settings.build_dir}")
    return ok
