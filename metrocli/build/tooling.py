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

"""External build tooling for metrocli.

This module runs the Node.js tools an app needs before it can be packed
(npm, the Lightning CLI, rollup, esbuild) and applies the shared failure
policy for them:

- Output is captured; on failure it is printed in a framed block
- In strict mode (LNG_BUILD_EXIT_ON_FAIL=true or --strict) a failure raises
  ToolingError and ends the run
- Otherwise the failure is reported and the pipeline carries on

Example:
    ```python
    from pathlib import Path
    from metrocli.build.tooling import install_dependencies

    ok = install_dependencies(Path("."), strict=False)
    ```
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import os
from pathlib import Path
import subprocess
import sys

from metrocli.exceptions import ToolingError
from metrocli.logging import Logger, get_global_logger

# How many directories (the project dir included) are searched for node_modules
TOOL_SEARCH_DEPTH = 3


def npm_command() -> str:
    """Return the npm executable name for this platform."""
    return "npm.cmd" if sys.platform.startswith("win") else "npm"


def find_tool(start_dir: Path, relative: str, depth: int = TOOL_SEARCH_DEPTH) -> Path:
    """Find a file under start_dir or one of its parents.

    Apps are sometimes nested inside a workspace whose node_modules lives a
    level or two up, so the lookup walks upward a bounded number of levels.

    Args:
        start_dir: Directory to start from.
        relative: Relative path to look for (e.g. "node_modules/.bin/rollup").
        depth: Number of directories to try, start_dir included.

    Returns:
        Path of the first match.

    Raises:
        ToolingError: If the file is not found within depth levels.
    """
    current = Path(start_dir).resolve()
    for _ in range(depth):
        candidate = current / relative
        if candidate.exists():
            return candidate
        current = current.parent
    raise ToolingError(f"Required files not found at the given path: {relative}")


def tool_environment(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for child tools: production mode plus extra variables."""
    env = dict(os.environ)
    env["NODE_ENV"] = "production"
    if extra:
        env.update(extra)
    return env


def run_tool(
    cmd: Sequence[str],
    cwd: Path,
    *,
    description: str,
    strict: bool,
    env: Mapping[str, str] | None = None,
    logger: Logger | None = None,
) -> bool:
    """Run an external build tool with the shared failure policy.

    Args:
        cmd: Command and arguments.
        cwd: Working directory for the tool.
        description: What the tool is doing, used in failure messages
            (e.g. "installing app dependencies").
        strict: If True, a failure raises ToolingError.
        env: Environment for the child process. Defaults to os.environ.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        True if the tool succeeded, False if it failed in non-strict mode.

    Raises:
        ToolingError: If the tool failed and strict is True.
    """
    if logger is None:
        logger = get_global_logger()

    logger.verbose("BUILD", f"Running: {' '.join(str(c) for c in cmd)}")

    try:
        result = subprocess.run(
            [str(c) for c in cmd],
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as err:
        output = err.stderr or err.stdout or ""
        message = f"Error while {description} (exit code {err.returncode})"
    except FileNotFoundError as err:
        output = str(err)
        message = f"Error while {description}: {cmd[0]} not found"
    else:
        if result.stdout:
            for line in result.stdout.strip().splitlines():
                logger.debug("BUILD", f"  {line}")
        return True

    logger.output(message, output)
    if strict:
        raise ToolingError(message, output=output)

    logger.warning(f"{message}; continuing (set LNG_BUILD_EXIT_ON_FAIL=true to stop)")
    return False


def install_dependencies(
    project_dir: Path,
    *,
    strict: bool = False,
    logger: Logger | None = None,
) -> bool:
    """Install the app's npm dependencies (npm i) in project_dir.

    Args:
        project_dir: App root containing package.json.
        strict: If True, a failed install raises ToolingError.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        True on success, False on a tolerated failure.

    Raises:
        ToolingError: If npm fails and strict is True.
    """
    return run_tool(
        [npm_command(), "i"],
        project_dir,
        description="installing app dependencies",
        strict=strict,
        env=tool_environment(),
        logger=logger,
    )
