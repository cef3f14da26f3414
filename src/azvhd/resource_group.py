"""Resource group lifecycle with guaranteed teardown.

The resource group is the only handle the sample keeps for cleanup: every
other resource is nested inside it, so deleting the group releases
everything.

Rules:
- The group ID is recorded only after creation succeeds. If creation
  fails, nothing is deleted.
- Once recorded, the group is deleted exactly once on every exit path.
- A failure while deleting is logged and swallowed. It must never replace
  the error that ended the run, nor crash the process.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from azure.mgmt.core.tools import parse_resource_id

from azvhd.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)


class ResourceGroupError(Exception):
    """Raised when resource group operations fail."""

    pass


@dataclass
class ResourceGroupInfo:
    """A created resource group."""

    id: str
    name: str
    location: str
    tags: dict[str, str] = field(default_factory=dict)


class ResourceGroupManager:
    """Create and delete resource groups through ResourceManagementClient."""

    def __init__(self, resource_client: Any):
        """Initialize manager.

        Args:
            resource_client: azure.mgmt.resource.ResourceManagementClient
        """
        self.resource_client = resource_client

    def create(
        self, name: str, location: str, tags: dict[str, str] | None = None
    ) -> ResourceGroupInfo:
        """Create (or update) a resource group.

        Args:
            name: Resource group name
            location: Azure region
            tags: Optional tags for the group

        Returns:
            ResourceGroupInfo for the created group

        Raises:
            ResourceGroupError: If creation fails
        """
        logger.info("creating resource group...")
        parameters: dict[str, Any] = {"location": location}
        if tags:
            parameters["tags"] = tags

        try:
            result = self.resource_client.resource_groups.create_or_update(name, parameters)
        except Exception as e:
            raise ResourceGroupError(
                LogSanitizer.create_safe_error_message(e, f"Failed to create resource group {name}")
            ) from e

        info = ResourceGroupInfo(
            id=result.id,
            name=result.name,
            location=result.location,
            tags=dict(result.tags or {}),
        )
        logger.info(f"Created a resource group with name: {info.name}")
        return info

    def delete(self, resource_group_id: str) -> None:
        """Delete a resource group by ID and wait for completion.

        Args:
            resource_group_id: Full resource ID of the group

        Raises:
            ResourceGroupError: If deletion fails
        """
        name = self.name_from_id(resource_group_id)
        logger.info(f"Deleting Resource Group: {resource_group_id}")
        try:
            self.resource_client.resource_groups.begin_delete(name).result()
        except Exception as e:
            raise ResourceGroupError(
                LogSanitizer.create_safe_error_message(e, f"Failed to delete resource group {name}")
            ) from e
        logger.info(f"Deleted Resource Group: {resource_group_id}")

    @staticmethod
    def name_from_id(resource_group_id: str) -> str:
        """Extract the resource group name from its resource ID.

        Raises:
            ResourceGroupError: If the ID has no resource group segment
        """
        parts = parse_resource_id(resource_group_id)
        name = parts.get("resource_group")
        if not name:
            raise ResourceGroupError(f"Not a resource group ID: {resource_group_id}")
        return name


class ResourceGroupScope:
    """Scope guard for the run's resource group.

    `resource_group` stays None until creation succeeds. Leaving the
    `with` block deletes a recorded group exactly once; errors raised in the
    block propagate unchanged after teardown.

    Example:
        >>> with ResourceGroupScope(manager) as scope:  # doctest: +SKIP
        ...     rg = scope.create("rg1", "eastus")
        ...     create_things_in(rg.name)
    """

    def __init__(self, manager: ResourceGroupManager):
        self.manager = manager
        self.resource_group: ResourceGroupInfo | None = None
        self.teardown_attempted = False
        self.teardown_succeeded: bool | None = None

    @property
    def resource_group_id(self) -> str | None:
        return self.resource_group.id if self.resource_group else None

    def create(
        self, name: str, location: str, tags: dict[str, str] | None = None
    ) -> ResourceGroupInfo:
        """Create the group and record its ID for teardown."""
        self.resource_group = self.manager.create(name, location, tags)
        return self.resource_group

    def teardown(self) -> bool:
        """Delete the recorded group, logging instead of raising on failure.

        Returns:
            True if the group was deleted, False if there was nothing to
            delete, teardown already ran, or deletion failed
        """
        if self.resource_group is None or self.teardown_attempted:
            return False

        self.teardown_attempted = True
        try:
            self.manager.delete(self.resource_group.id)
            self.teardown_succeeded = True
        except Exception as e:
            logger.error(LogSanitizer.create_safe_error_message(e, "Resource group teardown failed"))
            self.teardown_succeeded = False
        return self.teardown_succeeded

    def __enter__(self) -> "ResourceGroupScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.teardown()
        return False
