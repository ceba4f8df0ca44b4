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

"""Settings loading for metrocli.

This module layers built-in defaults, an optional project-level metro.yaml
and the environment (including the project's .env file) into a single frozen
Settings object that is threaded through the publish pipeline.

Public API:

- load_settings: Load the effective settings for a project directory
- Settings: Frozen dataclass holding the result
- get_app_vars: Extract APP_* variables forwarded into the bundle

Example:
    Basic usage:

        from pathlib import Path
        from metrocli.config import load_settings

        settings = load_settings(Path("."))
        print(settings.releases_dir)

"""

from .loader import Settings, get_app_vars, load_settings

__all__ = ["Settings", "get_app_vars", "load_settings"]
