"""
Tests for metrocli.metadata module.

Tests metadata handling including:
- Safe app id derivation
- Reading metadata.json
- AppMetadata construction
"""

from __future__ import annotations

import json

import pytest

from metrocli.exceptions import ConfigError
from metrocli.metadata import AppMetadata, load_metadata, make_safe_app_id

pytestmark = pytest.mark.unit


class TestMakeSafeAppId:
    """Tests for make_safe_app_id."""

    def test_dots_become_underscores(self):
        """Test dotted identifiers."""
        assert make_safe_app_id("com.example.MyApp") == "APP_com_example_MyApp"

    def test_hyphens_become_underscores(self):
        """Test hyphenated identifiers."""
        assert make_safe_app_id("com.example.my-app") == "APP_com_example_my_app"

    def test_other_characters_are_kept(self):
        """Test that only dots and hyphens are replaced."""
        assert make_safe_app_id("my_app2") == "APP_my_app2"

    @pytest.mark.parametrize("identifier", [None, ""])
    def test_missing_identifier(self, identifier):
        """Test the fallback for an absent identifier."""
        assert make_safe_app_id(identifier) == "APP"


class TestLoadMetadata:
    """Tests for reading metadata.json."""

    def test_load_valid_file(self, tmp_test_dir, valid_metadata):
        """Test that the parsed document is returned unchanged."""
        (tmp_test_dir / "metadata.json").write_text(
            json.dumps(valid_metadata), encoding="utf-8"
        )

        assert load_metadata(tmp_test_dir) == valid_metadata

    def test_missing_file_raises(self, tmp_test_dir):
        """Test that a missing metadata.json raises ConfigError."""
        with pytest.raises(ConfigError, match="File not found error occurred"):
            load_metadata(tmp_test_dir)

    def test_invalid_json_raises(self, tmp_test_dir):
        """Test that malformed JSON raises ConfigError."""
        (tmp_test_dir / "metadata.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Error occurred while reading"):
            load_metadata(tmp_test_dir)

    def test_non_object_document_is_returned(self, tmp_test_dir):
        """Test that shape checks are left to validation."""
        (tmp_test_dir / "metadata.json").write_text("[1, 2]", encoding="utf-8")

        assert load_metadata(tmp_test_dir) == [1, 2]


class TestAppMetadata:
    """Tests for the AppMetadata record."""

    def test_from_mapping_defaults(self, valid_metadata):
        """Test optional fields default to empty values."""
        metadata = AppMetadata.from_mapping(valid_metadata)

        assert metadata.external_url is None
        assert metadata.icons == {}
        assert metadata.artwork == {}
        assert metadata.splash_image is None
        assert metadata.safe_app_id == "APP_com_example_MyApp"

    def test_empty_external_url_is_not_external(self, valid_metadata):
        """Test that an empty externalUrl does not mark the app as hosted."""
        valid_metadata["externalUrl"] = ""

        assert AppMetadata.from_mapping(valid_metadata).is_externally_hosted is False

    def test_raw_is_not_compared(self, valid_metadata):
        """Test that equality ignores the raw mapping."""
        a = AppMetadata.from_mapping(valid_metadata)
        b = AppMetadata.from_mapping({**valid_metadata, "extra": 1})

        assert a == b
