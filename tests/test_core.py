"""
Tests for metrocli.core module.

Tests publish orchestration including:
- Full bundled and externally hosted runs
- Step short-circuiting on validation, size and upload failures
- Staging cleanup and release archive retention
- Credential cache updates
"""

from __future__ import annotations

import tarfile
from unittest.mock import patch

import pytest

from metrocli.auth import CredentialCache
from metrocli.auth.authenticator import LOGIN_STATUS_PATH
from metrocli.core import package_app, publish_app
from metrocli.exceptions import (
    AuthenticationError,
    MetadataError,
    PackageTooLargeError,
    ToolingError,
    UploadError,
)
from metrocli.metadata import AppMetadata

pytestmark = pytest.mark.unit

BASE_URL = "https://api.metrological.com"
LOGIN_URL = BASE_URL + LOGIN_STATUS_PATH
UPLOAD_URL = BASE_URL + "/api/developer/app-store/upload-lightning"


def _no_prompt(default):
    raise AssertionError("prompt should not be called")


class TestPublishApp:
    """Tests for publish_app."""

    def test_bundled_app(self, requests_mock, make_project, make_settings, login_ok, silent_logger):
        """Test a full run for an app that needs bundling."""
        project = make_project()
        settings = make_settings(project)
        requests_mock.get(LOGIN_URL, json=login_ok)
        requests_mock.post(UPLOAD_URL, json={})

        with patch("metrocli.core.install_dependencies", return_value=True) as mock_install, \
                patch("metrocli.core.bundle_app", return_value=True) as mock_bundle:
            result = publish_app(
                project,
                api_key="secret",
                settings=settings,
                prompt=_no_prompt,
                logger=silent_logger,
            )

        mock_install.assert_called_once()
        mock_bundle.assert_called_once()
        assert result.status == "success"
        assert result.archive_path == settings.releases_dir / "com.example.MyApp.1.0.0.tgz"
        assert result.archive_path.exists()
        assert not settings.staging_dir.exists()

        with tarfile.open(result.archive_path, "r:gz") as tar:
            names = tar.getnames()
        assert "src/index.js" in names
        assert "appBundle.es5.js" in names

    def test_external_app_skips_build(self, requests_mock, make_project, make_settings, login_ok, silent_logger):
        """Test that hosted apps never run npm or the bundler."""
        project = make_project(external=True, bundles=False)
        settings = make_settings(project)
        requests_mock.get(LOGIN_URL, json=login_ok)
        requests_mock.post(UPLOAD_URL, json={})

        with patch("metrocli.core.install_dependencies") as mock_install, \
                patch("metrocli.core.bundle_app") as mock_bundle:
            result = publish_app(
                project, api_key="secret", settings=settings, logger=silent_logger
            )

        mock_install.assert_not_called()
        mock_bundle.assert_not_called()
        with tarfile.open(result.archive_path, "r:gz") as tar:
            top_level = {name.split("/")[0] for name in tar.getnames()}
        assert top_level == {"metadata.json", "static"}

    def test_invalid_metadata_stops_before_anything(self, requests_mock, make_project, make_settings, valid_metadata, silent_logger):
        """Test that validation failures happen before install and network."""
        valid_metadata["icon"] = "icon.png"
        project = make_project(metadata=valid_metadata)
        settings = make_settings(project)

        with patch("metrocli.core.install_dependencies") as mock_install:
            with pytest.raises(MetadataError, match='"icon"'):
                publish_app(project, api_key="secret", settings=settings, logger=silent_logger)

        mock_install.assert_not_called()
        assert requests_mock.call_count == 0
        assert not settings.releases_dir.exists()

    def test_strict_mode_propagates_tooling_errors(self, make_project, make_settings, silent_logger):
        """Test that --strict turns tooling failures fatal."""
        project = make_project()
        settings = make_settings(project)

        with patch("metrocli.core.install_dependencies", side_effect=ToolingError("npm failed")) as mock_install:
            with pytest.raises(ToolingError):
                publish_app(
                    project, api_key="secret", strict=True, settings=settings, logger=silent_logger
                )

        assert mock_install.call_args.kwargs["strict"] is True

    def test_upload_error_cleans_staging_and_keeps_archive(self, requests_mock, make_project, make_settings, login_ok, silent_logger):
        """Test cleanup after a rejected upload."""
        project = make_project(external=True)
        settings = make_settings(project)
        requests_mock.get(LOGIN_URL, json=login_ok)
        requests_mock.post(UPLOAD_URL, json={"error": ["version_already_exists"]})

        with pytest.raises(UploadError) as exc_info:
            publish_app(project, api_key="secret", settings=settings, logger=silent_logger)

        assert exc_info.value.codes == ["version_already_exists"]
        assert not settings.staging_dir.exists()
        assert (settings.releases_dir / "com.example.MyApp.1.0.0.tgz").exists()

    def test_oversized_archive_never_uploaded(self, requests_mock, make_project, make_settings, silent_logger):
        """Test that the size guard runs before any network call."""
        project = make_project(external=True)
        settings = make_settings(project)

        with patch("metrocli.core.check_archive_size", side_effect=PackageTooLargeError(12.0)):
            with pytest.raises(PackageTooLargeError):
                publish_app(project, api_key="secret", settings=settings, logger=silent_logger)

        assert requests_mock.call_count == 0
        assert not settings.staging_dir.exists()

    def test_leftover_staging_is_discarded(self, requests_mock, make_project, make_settings, login_ok, silent_logger):
        """Test that files from an interrupted run do not reach the archive."""
        project = make_project(external=True)
        settings = make_settings(project)
        settings.staging_dir.mkdir()
        (settings.staging_dir / "stale.txt").write_text("old")
        requests_mock.get(LOGIN_URL, json=login_ok)
        requests_mock.post(UPLOAD_URL, json={})

        result = publish_app(project, api_key="secret", settings=settings, logger=silent_logger)

        with tarfile.open(result.archive_path, "r:gz") as tar:
            assert "stale.txt" not in tar.getnames()

    def test_prompted_key_is_cached_after_success(self, requests_mock, make_project, make_settings, login_ok, silent_logger):
        """Test that the cache is updated once the upload succeeds."""
        project = make_project(external=True)
        settings = make_settings(project)
        requests_mock.get(LOGIN_URL, json=login_ok)
        requests_mock.post(UPLOAD_URL, json={})

        publish_app(
            project,
            settings=settings,
            prompt=lambda default: "typed-key",
            logger=silent_logger,
        )

        assert CredentialCache(settings.cache_file).get("com.example.MyApp") == "typed-key"

    def test_failed_upload_does_not_cache(self, requests_mock, make_project, make_settings, silent_logger):
        """Test that a rejected key is not remembered."""
        project = make_project(external=True)
        settings = make_settings(project)
        requests_mock.get(LOGIN_URL, status_code=401)

        with pytest.raises(AuthenticationError):
            publish_app(
                project,
                settings=settings,
                prompt=lambda default: "bad-key",
                logger=silent_logger,
            )

        assert not settings.cache_file.exists()

    def test_no_cache(self, requests_mock, make_project, make_settings, login_ok, silent_logger):
        """Test that use_cache=False neither reads nor writes the cache."""
        project = make_project(external=True)
        settings = make_settings(project)
        requests_mock.get(LOGIN_URL, json=login_ok)
        requests_mock.post(UPLOAD_URL, json={})

        publish_app(
            project,
            settings=settings,
            use_cache=False,
            prompt=lambda default: default or "typed",
            logger=silent_logger,
        )

        assert not settings.cache_file.exists()

    def test_unwritable_cache_does_not_fail_upload(self, requests_mock, make_project, make_settings, tmp_test_dir, login_ok, silent_logger):
        """Test that a finished upload is reported even if the key cannot be saved."""
        project = make_project(external=True)
        blocker = tmp_test_dir / "blocker"
        blocker.write_text("x", encoding="utf-8")
        settings = make_settings(project, cache_file=blocker / "cache" / "credentials.json")
        requests_mock.get(LOGIN_URL, json=login_ok)
        upload = requests_mock.post(UPLOAD_URL, json={})

        result = publish_app(
            project,
            settings=settings,
            prompt=lambda default: "typed-key",
            logger=silent_logger,
        )

        assert upload.called
        assert result.status == "success"
        assert not settings.cache_file.exists()


class TestPackageApp:
    """Tests for package_app."""

    def test_returns_package_result(self, make_project, make_settings, valid_metadata, silent_logger):
        """Test staging and packing without uploading."""
        project = make_project()
        settings = make_settings(project)
        metadata = AppMetadata.from_mapping(valid_metadata)

        result = package_app(project, metadata, settings, logger=silent_logger)

        assert result.archive_path.name == "com.example.MyApp.1.0.0.tgz"
        assert result.size_mb < 10
        assert result.staged_files[:3] == ("metadata.json", "static", "src")
        # Staging is left for the caller to remove
        assert settings.staging_dir.exists()
