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

"""Release upload to the Metrological Back Office.

This module submits a release archive to the Back Office app store as a
multipart form (fields "id" and "version", file field "upload") with the
developer's API key in the X-Api-Token header.

The Back Office reports application-level failures inside successful (2xx)
responses, in an "error" field that is sometimes a single code and sometimes
a list of codes. normalize_error_codes() turns both shapes into a list at the
boundary; each code is then translated through UPLOAD_ERRORS, falling back
to the raw code when there is no translation.

Example:
    Basic upload:
        ```python
        from pathlib import Path
        from metrocli.io.upload import upload_package

        result = upload_package(
            metadata,
            api_key="my-api-key",
            archive_path=Path("releases/com.example.MyApp.1.0.0.tgz"),
        )
        print(result.status)  # success
        ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import requests

from metrocli.auth.authenticator import authenticate
from metrocli.build.packager import archive_size_mb
from metrocli.exceptions import UploadError
from metrocli.logging import Logger, get_global_logger
from metrocli.metadata import AppMetadata
from metrocli.results import UploadResult
from metrocli.session import API_TOKEN_HEADER, DEFAULT_BASE_URL, make_session

UPLOAD_PATH = "/api/{user_type}/app-store/upload-lightning"
DEFAULT_USER_TYPE = "developer"

# Error codes returned by the backend, translated into readable messages
UPLOAD_ERRORS: dict[str, str] = {
    "version_already_exists": "The current version of your app already exists",
    "missing_field_file": "There is a missing field",
    "app_belongs_to_other_user": "You are not the owner of this app",
}


def normalize_error_codes(error: Any) -> list[str]:
    """Normalize the backend's "error" field to a list of codes.

    Example:
        >>> normalize_error_codes("version_already_exists")
        ['version_already_exists']
        >>> normalize_error_codes(["a", "b"])
        ['a', 'b']
        >>> normalize_error_codes(None)
        []
    """
    if not error:
        return []
    if isinstance(error, str):
        return [error]
    if isinstance(error, (list, tuple)):
        return [str(code) for code in error if code]
    return [str(error)]


def describe_upload_error(code: str) -> str:
    """Translate an error code, falling back to the raw code."""
    return UPLOAD_ERRORS.get(code, code)


def upload_url(base_url: str, user: dict[str, Any]) -> str:
    """Return the upload endpoint for the authenticated user's account type."""
    user_type = user.get("type") or DEFAULT_USER_TYPE
    return base_url.rstrip("/") + UPLOAD_PATH.format(user_type=user_type)


def _raise_for_codes(codes: list[str]) -> None:
    if codes:
        raise UploadError(codes, [describe_upload_error(code) for code in codes])


def _error_field(resp: requests.Response) -> Any:
    try:
        data = resp.json()
    except ValueError:
        return None
    return data.get("error") if isinstance(data, dict) else None


def upload_package(
    metadata: AppMetadata,
    api_key: str,
    archive_path: Path,
    *,
    base_url: str = DEFAULT_BASE_URL,
    session: requests.Session | None = None,
    timeout: int = 60,
    upload_timeout: int = 300,
    logger: Logger | None = None,
) -> UploadResult:
    """Authenticate and upload a release archive.

    Args:
        metadata: Validated app metadata (identifier and version are sent).
        api_key: Developer API key.
        archive_path: Archive created by build.packager.create_archive.
        base_url: Back Office base URL.
        session: Session to use. A new one is created (and closed) if omitted.
        timeout: Timeout for the authentication request, in seconds.
        upload_timeout: Timeout for the upload request, in seconds.
        logger: Logger for output. Defaults to the global logger.

    Returns:
        UploadResult describing the accepted upload.

    Raises:
        AuthenticationError: If the API key is rejected.
        UploadError: If the transport fails, the backend answers with a
            non-2xx status, or the response carries error codes.
    """
    if logger is None:
        logger = get_global_logger()

    owns_session = session is None
    if session is None:
        session = make_session()

    try:
        user = authenticate(
            api_key, base_url=base_url, session=session, timeout=timeout, logger=logger
        )

        url = upload_url(base_url, user)
        archive_path = Path(archive_path)
        logger.debug("HTTP", f"POST {url} ({archive_path.name})")

        try:
            with open(archive_path, "rb") as f:
                resp = session.post(
                    url,
                    data={"id": metadata.identifier, "version": metadata.version},
                    files={"upload": (archive_path.name, f, "application/gzip")},
                    headers={API_TOKEN_HEADER: api_key},
                    timeout=upload_timeout,
                )
        except requests.RequestException as err:
            raise UploadError(
                [], [f"Error occurred while uploading the app: {err}"]
            ) from err
    finally:
        if owns_session:
            session.close()

    logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")

    # Errors also come back with a 2xx status, so the body is always checked
    codes = normalize_error_codes(_error_field(resp))
    if not resp.ok:
        _raise_for_codes(codes)
        raise UploadError(
            [], [f"Upload failed with HTTP {resp.status_code} {resp.reason}"]
        )
    _raise_for_codes(codes)

    logger.verbose("UPLOAD", f"[OK] Uploaded {metadata.identifier} v{metadata.version}")

    return UploadResult(
        app_id=metadata.identifier,
        version=metadata.version,
        archive_path=archive_path,
        size_mb=archive_size_mb(archive_path),
        user_type=user.get("type") or DEFAULT_USER_TYPE,
        status="success",
    )
