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

"""Metadata validation module.

This module checks a parsed metadata.json against the Back Office metadata
schema before anything is built or uploaded.

The schema is a declarative rule table (METADATA_RULES) evaluated in a fixed
order. Validation is fail-fast: the first violation found is raised as a
MetadataError carrying the dotted field path and the violated rule, and no
later field is looked at.

Validation Checks (in order):

- name: required, non-empty string
- identifier: required, non-empty string
- version: required, non-empty string
- externalUrl: optional, must start with http:// or https://
- icon: required, path matching ./static/<name>.(png|jpg|jpeg)
- icons: optional object of icon paths
- splashImage: optional icon path
- artwork: optional object of resolution-keyed icon paths

Each field's rule is turned into a JSON-schema fragment and checked with
jsonschema's Draft 7 validator.

Example:
    Validate parsed metadata:
        ```python
        from metrocli.exceptions import MetadataError
        from metrocli.validation import validate_metadata

        try:
            metadata = validate_metadata({"name": "MyApp"})
        except MetadataError as err:
            print(err)  # Metadata is invalid: "identifier" is required
        ```

"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError

from metrocli.exceptions import MetadataError
from metrocli.logging import Logger, get_global_logger
from metrocli.metadata import AppMetadata

__all__ = [
    "FieldRule",
    "ICON_PATTERN",
    "METADATA_RULES",
    "URL_PATTERN",
    "validate_metadata",
]

URL_PATTERN = r"^https?://"
# (?!\n) keeps $ from matching before a trailing newline
ICON_PATTERN = r"^\./static/.+\.(png|jpg|jpeg)(?!\n)$"

MISSING_METADATA_MESSAGE = (
    "Metadata wasn't found, make sure it's provided through a metadata.json file"
)

_ICON_SCHEMA: dict[str, Any] = {"type": "string", "pattern": ICON_PATTERN}


@dataclass(frozen=True)
class FieldRule:
    """One row of the metadata rule table.

    Attributes:
        name: Top-level metadata key.
        type: JSON type of the value ("string" or "object").
        required: Whether the key must be present.
        pattern: Regex the (string) value must match.
        min_length: Minimum string length.
        properties: For objects, the documented keys; every value of the
            object, documented or not, must be an icon path.
    """

    name: str
    type: str = "string"
    required: bool = False
    pattern: str | None = None
    min_length: int | None = None
    properties: tuple[str, ...] = ()

    @property
    def schema(self) -> dict[str, Any]:
        """JSON-schema fragment for this field's value."""
        fragment: dict[str, Any] = {"type": self.type}
        if self.min_length is not None:
            fragment["minLength"] = self.min_length
        if self.pattern is not None:
            fragment["pattern"] = self.pattern
        if self.type == "object":
            fragment["properties"] = {key: _ICON_SCHEMA for key in self.properties}
            fragment["additionalProperties"] = _ICON_SCHEMA
        return fragment


METADATA_RULES: tuple[FieldRule, ...] = (
    FieldRule("name", required=True, min_length=1),
    FieldRule("identifier", required=True, min_length=1),
    FieldRule("version", required=True, min_length=1),
    FieldRule("externalUrl", pattern=URL_PATTERN),
    FieldRule("icon", required=True, pattern=ICON_PATTERN),
    FieldRule(
        "icons",
        type="object",
        properties=("default", "square", "rounded", "landscape"),
    ),
    FieldRule("splashImage", pattern=ICON_PATTERN),
    FieldRule("artwork", type="object", properties=("1920x1080", "1280x720")),
)

# Built once; the rule table is static
_VALIDATORS: dict[str, Draft7Validator] = {
    rule.name: Draft7Validator(rule.schema) for rule in METADATA_RULES
}


def _describe(error: ValidationError) -> str:
    """Turn a jsonschema error into the short rule text shown to users."""
    if error.validator == "type":
        return f"is not of a type(s) {error.validator_value}"
    if error.validator == "pattern":
        return f"does not match pattern {error.validator_value}"
    if error.validator == "minLength":
        return "must not be empty"
    return error.message


def _dotted(name: str, subpath: Iterable[Any]) -> str:
    return ".".join([name, *(str(part) for part in subpath)])


def validate_metadata(
    metadata: Any, logger: Logger | None = None
) -> AppMetadata:
    """Validate parsed metadata.json contents.

    Rules are evaluated in METADATA_RULES order and the first violation is
    raised immediately. A key that is present with a null value counts as
    absent.

    Args:
        metadata: The parsed metadata.json document (any JSON value).
        logger: Logger for progress output. Defaults to the global logger.

    Returns:
        AppMetadata built from the unchanged input mapping.

    Raises:
        MetadataError: If metadata is missing, not an object, or breaks a
            rule. err.path holds the dotted field path and err.rule the
            violated rule.

    Example:
        ```python
        metadata = validate_metadata({
            "name": "MyApp",
            "identifier": "com.example.MyApp",
            "version": "1.2.3",
            "icon": "./static/icon.png",
        })
        assert metadata.safe_app_id == "APP_com_example_MyApp"
        ```
    """
    if logger is None:
        logger = get_global_logger()

    if metadata is None:
        raise MetadataError("", MISSING_METADATA_MESSAGE)

    if not isinstance(metadata, Mapping):
        raise MetadataError(
            "", f"Metadata must be a JSON object, got {type(metadata).__name__}"
        )

    for rule in METADATA_RULES:
        value = metadata.get(rule.name)
        if value is None:
            if rule.required:
                raise MetadataError(rule.name, "is required")
            logger.debug("METADATA", f"{rule.name}: not set")
            continue

        error = next(iter(_VALIDATORS[rule.name].iter_errors(value)), None)
        if error is not None:
            raise MetadataError(_dotted(rule.name, error.absolute_path), _describe(error))

        logger.debug("METADATA", f"{rule.name}: ok")

    logger.verbose("METADATA", "[OK] metadata.json is valid")
    return AppMetadata.from_mapping(metadata)
