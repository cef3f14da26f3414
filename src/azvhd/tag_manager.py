"""Tag management module.

This module handles the local half of VM tag operations: validating,
parsing and merging tag maps. Applying the merged map to a VM is done by
azvhd.vm_operations.

Security:
- Input validation for tag keys and values
"""

import logging
import re

logger = logging.getLogger(__name__)


class TagManagerError(Exception):
    """Raised when tag management operations fail."""

    pass


class TagManager:
    """Validate and merge Azure resource tags."""

    # Azure Resource Manager limits
    MAX_TAGS = 50
    MAX_KEY_LENGTH = 512
    MAX_VALUE_LENGTH = 256

    # Tag key validation: alphanumeric, underscore, hyphen, period
    TAG_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")

    @classmethod
    def merge_tags(cls, existing: dict[str, str] | None, new: dict[str, str]) -> dict[str, str]:
        """Merge new tags over existing tags.

        Adding a key that is already present replaces its value, so applying
        the same tags twice yields the same map.

        Args:
            existing: Current tags on the resource (None treated as empty)
            new: Tags to add

        Returns:
            New merged dictionary (inputs are not modified)

        Raises:
            TagManagerError: If a tag is invalid or the result exceeds the tag limit
        """
        for key, value in new.items():
            if not cls.validate_tag_key(key):
                raise TagManagerError(f"Invalid tag key: {key}")
            if not cls.validate_tag_value(value):
                raise TagManagerError(f"Invalid tag value for {key}: {value}")

        merged = dict(existing or {})
        merged.update(new)

        if len(merged) > cls.MAX_TAGS:
            raise TagManagerError(
                f"Too many tags: {len(merged)} (Azure allows at most {cls.MAX_TAGS})"
            )

        logger.debug(f"Merged tags: {merged}")
        return merged

    @classmethod
    def parse_tag_assignment(cls, tag_str: str) -> tuple[str, str]:
        """Parse tag assignment string (key=value).

        Args:
            tag_str: Tag assignment in format "key=value"

        Returns:
            Tuple of (key, value)

        Raises:
            TagManagerError: If format is invalid
        """
        if "=" not in tag_str:
            raise TagManagerError(f"Invalid tag format: {tag_str}. Expected format: key=value")

        # Split only on first '=' to handle values with '='
        key, value = tag_str.split("=", 1)

        if not key:
            raise TagManagerError(f"Invalid tag format: {tag_str}. Tag key cannot be empty")
        if not value:
            raise TagManagerError(f"Invalid tag format: {tag_str}. Tag value cannot be empty")

        if not cls.validate_tag_key(key):
            raise TagManagerError(f"Invalid tag key: {key}")
        if not cls.validate_tag_value(value):
            raise TagManagerError(f"Invalid tag value: {value}")

        return key, value

    @classmethod
    def parse_tag_assignments(cls, tag_strs: tuple[str, ...] | list[str]) -> dict[str, str]:
        """Parse several key=value strings; later keys win."""
        tags: dict[str, str] = {}
        for tag_str in tag_strs:
            key, value = cls.parse_tag_assignment(tag_str)
            tags[key] = value
        return tags

    @classmethod
    def validate_tag_key(cls, key: str) -> bool:
        """Validate tag key.

        Tag keys must be alphanumeric with underscore, hyphen, or period.
        """
        if not key or len(key) > cls.MAX_KEY_LENGTH:
            return False
        return bool(cls.TAG_KEY_PATTERN.match(key))

    @classmethod
    def validate_tag_value(cls, value: str) -> bool:
        """Validate tag value.

        Tag values can contain most characters including spaces.
        """
        return isinstance(value, str) and len(value) <= cls.MAX_VALUE_LENGTH
