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

"""Back Office authentication for metrocli.

The Back Office identifies developers by API key. Authentication is a single
login-status call with the key in the X-Api-Token header; the response's
securityContext lists the contexts the key belongs to, and the last entry is
the user the upload is made for.

There is no retry and no token refresh: one attempt, and any failure ends
the run.

Example:
    ```python
    from metrocli.auth import authenticate

    user = authenticate("my-api-key")
    print(user.get("type"))  # e.g. "developer"
    ```
"""

from __future__ import annotations

from typing import Any

import requests

from metrocli.exceptions import AuthenticationError
from metrocli.logging import Logger, get_global_logger
from metrocli.session import API_TOKEN_HEADER, DEFAULT_BASE_URL, make_session

LOGIN_STATUS_PATH = "/api/authentication/login-status"

INCORRECT_KEY_MESSAGE = "Incorrect API key or not logged in to metrological dashboard"
UNEXPECTED_MESSAGE = "Unexpected authentication error"


def authenticate(
    api_key: str,
    *,
    base_url: str = DEFAULT_BASE_URL,
    session: requests.Session | None = None,
    timeout: int = 60,
    logger: Logger | None = None,
) -> dict[str, Any]:
    """Verify an API key and return the user it belongs to.

    Args:
        api_key: Developer API key.
        base_url: Back Office base URL.
        session: Session to use. A new one is created (and closed) if omitted.
        timeout: Per-request timeout in seconds.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        The user object (last securityContext entry).

    Raises:
        AuthenticationError: With INCORRECT_KEY_MESSAGE on transport errors,
            non-2xx responses, non-JSON bodies or a response without a
            securityContext list; with UNEXPECTED_MESSAGE when the list is
            there but holds no user.
    """
    if logger is None:
        logger = get_global_logger()

    url = base_url.rstrip("/") + LOGIN_STATUS_PATH
    logger.debug("HTTP", f"GET {url}")

    owns_session = session is None
    if session is None:
        session = make_session()

    try:
        resp = session.get(url, headers={API_TOKEN_HEADER: api_key}, timeout=timeout)
        logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as err:
        raise AuthenticationError(INCORRECT_KEY_MESSAGE) from err
    finally:
        if owns_session:
            session.close()

    contexts = data.get("securityContext") if isinstance(data, dict) else None
    if not isinstance(contexts, list):
        raise AuthenticationError(INCORRECT_KEY_MESSAGE)

    user = contexts[-1] if contexts else None
    if not user:
        raise AuthenticationError(UNEXPECTED_MESSAGE)

    if not isinstance(user, dict):
        user = {"id": user}

    logger.verbose("AUTH", f"[OK] Authenticated as {user.get('type', 'developer')}")
    return user
