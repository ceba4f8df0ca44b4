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

"""Per-user API key cache for metrocli.

Developers usually publish the same apps over and over with the same key.
The cache remembers the last key that was used successfully for each app
identifier and offers it as the default at the next prompt.

This is a convenience cache, not a vault: keys are stored in plain JSON in
the user's home directory (~/.metrocli/credentials.json by default), never
expire, and are only ever replaced per identifier.

File layout:

    {
      "credentials": {"com.example.MyApp": "<api key>"},
      "metadata": {"last_updated": "...", "metrocli_version": "...",
                   "schema_version": "1"}
    }

Example:
    ```python
    from pathlib import Path
    from metrocli.auth import CredentialCache

    cache = CredentialCache(Path.home() / ".metrocli" / "credentials.json")
    cache.put("com.example.MyApp", "secret")
    assert cache.get("com.example.MyApp") == "secret"
    ```
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any

from metrocli.logging import Logger, get_global_logger

DEFAULT_CACHE_FILE = Path("~/.metrocli/credentials.json")


class CredentialCache:
    """JSON-file backed identifier -> API key store.

    The file is read lazily on first access and written on every put().

    Attributes:
        cache_file: Path to the JSON cache file.
    """

    def __init__(self, cache_file: Path = DEFAULT_CACHE_FILE, logger: Logger | None = None):
        self.cache_file = Path(cache_file).expanduser()
        self._logger = logger
        self._data: dict[str, Any] | None = None

    @property
    def logger(self) -> Logger:
        return self._logger if self._logger is not None else get_global_logger()

    def _load(self) -> dict[str, Any]:
        """Load the cache file, starting fresh when missing, corrupted or unreadable."""
        if self._data is not None:
            return self._data

        try:
            with open(self.cache_file, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            data = create_default_cache()
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = create_default_cache()
            self._backup_corrupted()
        except OSError as err:
            self.logger.warning(
                f"Could not read credential cache {self.cache_file}: {err}. "
                "Continuing without cached keys."
            )
            data = create_default_cache()

        if not isinstance(data, dict) or not isinstance(data.get("credentials"), dict):
            data = create_default_cache()

        self._data = data
        return data

    def _backup_corrupted(self) -> None:
        backup = self.cache_file.with_suffix(".json.backup")
        try:
            self.cache_file.replace(backup)
        except OSError as err:
            self.logger.warning(
                f"Corrupted credential cache {self.cache_file} could not be "
                f"backed up: {err}. Starting fresh."
            )
            return
        self.logger.warning(
            f"Corrupted credential cache backed up to {backup}. Starting fresh."
        )

    def get(self, identifier: str) -> str | None:
        """Return the cached API key for an app identifier, if any."""
        value = self._load()["credentials"].get(identifier)
        return value if isinstance(value, str) and value else None

    def put(self, identifier: str, api_key: str) -> bool:
        """Store (or replace) the API key for an app identifier and save.

        Returns:
            True if the cache file was written. A failed write is reported as
            a warning and returns False; the cache is never fatal.
        """
        data = self._load()
        data["credentials"][identifier] = api_key
        if not self._save(data):
            return False
        self.logger.verbose("AUTH", f"Saved API key for {identifier} to {self.cache_file}")
        return True

    def _save(self, data: dict[str, Any]) -> bool:
        from metrocli import __version__

        data.setdefault("metadata", {})
        data["metadata"]["last_updated"] = datetime.now(UTC).isoformat()
        data["metadata"]["metrocli_version"] = __version__

        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.write("\n")
        except OSError as err:
            self.logger.warning(f"Could not write credential cache {self.cache_file}: {err}")
            return False
        return True


def create_default_cache() -> dict[str, Any]:
    """Create an empty cache structure."""
    return {
        "metadata": {"schema_version": "1"},
        "credentials": {},
    }
