"""
Resolve the API key for a publish run.

Lookup order:

1. An explicit key (the --api-key option)
2. METRO_API_KEY from the environment or the project's .env file
3. An interactive prompt, pre-filled from the credential cache
"""

from __future__ import annotations

from collections.abc import Callable
import getpass

from metrocli.auth.cache import CredentialCache
from metrocli.exceptions import AuthenticationError

PROMPT = "Please provide your API key"


def _mask(api_key: str) -> str:
    return "*" * 4 + api_key[-4:] if len(api_key) > 4 else "*" * len(api_key)


def prompt_api_key(default: str | None = None) -> str:
    """
    Ask for the API key without echoing it.

    When a default is available, pressing Enter reuses it.
    """
    if default:
        answer = getpass.getpass(f"{PROMPT} [{_mask(default)}]: ")
    else:
        answer = getpass.getpass(f"{PROMPT}: ")
    return answer.strip() or (default or "")


def resolve_api_key(
    identifier: str,
    *,
    explicit: str | None = None,
    env_key: str | None = None,
    cache: CredentialCache | None = None,
    prompt: Callable[[str | None], str] = prompt_api_key,
) -> str:
    """
    Return the API key to publish `identifier` with.

    :param identifier: App identifier, the credential cache key.
    :param explicit: Key given on the command line; wins over everything.
    :param env_key: Key from METRO_API_KEY.
    :param cache: Credential cache used to pre-fill the prompt (optional).
    :param prompt: Prompt function, called with the cached default.
    :raises AuthenticationError: If no key was given.
    """
    for candidate in (explicit, env_key):
        if candidate and candidate.strip():
            return candidate.strip()

    default = cache.get(identifier) if cache is not None else None
    api_key = prompt(default)
    if not api_key:
        raise AuthenticationError("No API key provided")
    return api_key
