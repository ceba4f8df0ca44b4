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

"""Authentication and API key handling for metrocli.

Public API:

- authenticate: Verify an API key against the Back Office
- CredentialCache: Per-user identifier -> API key convenience cache
- resolve_api_key: Pick the key from CLI option, environment or prompt
"""

from .authenticator import authenticate
from .cache import CredentialCache
from .credentials import prompt_api_key, resolve_api_key

__all__ = ["CredentialCache", "authenticate", "prompt_api_key", "resolve_api_key"]
