"""
Back Office upload for metrocli.

Public API:

upload_package : function
    Authenticate and upload a release archive.
normalize_error_codes : function
    Turn the backend's "error" field into a list of codes.
UPLOAD_ERRORS : dict
    Known error codes and their readable messages.

Example:
    from pathlib import Path
    from metrocli.io import upload_package

    result = upload_package(metadata, "my-api-key", Path("releases/app.1.0.0.tgz"))
    print(result.status)

"""

from .upload import UPLOAD_ERRORS, normalize_error_codes, upload_package

__all__ = ["UPLOAD_ERRORS", "normalize_error_codes", "upload_package"]
