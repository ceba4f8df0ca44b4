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

"""HTTP session setup for talking to the Back Office."""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter

DEFAULT_BASE_URL = "https://api.metrological.com"

# Header carrying the developer's API key on every Back Office call
API_TOKEN_HEADER = "X-Api-Token"


def make_session() -> requests.Session:
    """
    Create a requests.Session for Back Office calls.

    Every call is a single attempt: the adapters are mounted with
    max_retries=0 so a failed login or upload is reported, never replayed.
    """
    from metrocli import __version__

    s = requests.Session()
    s.headers.update(
        {
            "User-Agent": f"metrocli/{__version__}",
            "Accept": "application/json, text/plain, */*",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=0))
    s.mount("https://", HTTPAdapter(max_retries=0))
    return s
