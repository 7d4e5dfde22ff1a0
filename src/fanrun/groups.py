"""Named target groups stored as YAML files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# start with alphanumeric, then alphanumeric/underscore/hyphen
GROUP_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]*$")


class GroupError(Exception):
    """Raised when group operations fail."""

    pass


# Sentinel for "not provided" to distinguish from explicit None
_UNSET = object()


@dataclass
class GroupDefinition:
    """Definition of a named target group."""

    name: str
    hosts: list[str]
    description: str = ""
    user: str | None = None


class GroupManager:
    """Manages named target groups under ``<config_root>/groups/``."""

    def __init__(self, config_root: Path) -> None:
        self.config_root = Path(config_root)
        self.groups_dir = self.config_root / "groups"
        self.default_file = self.groups_dir / ".default"
        self.groups_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("GroupManager initialized with groups_dir: %s", self.groups_dir)

    def _validate_name(self, name: str) -> None:
        if not GROUP_NAME_PATTERN.match(name):
            raise GroupError(
                f"Invalid group name '{name}': must start with alphanumeric character "
                "and contain only alphanumeric, underscore, or hyphen characters"
            )

    def _group_path(self, name: str) -> Path:
        return self.groups_dir / f"{name}.yaml"

    def create(self, name: str, hosts: list[str], description: str = "", user: str | None = None) -> None:
        """Create a new named group.

        Raises:
            GroupError: If the group already exists or the name is invalid.
        """
        self._validate_name(name)
        if self._group_path(name).exists():
            raise GroupError(f"Group '{name}' already exists")

        self._write_group(GroupDefinition(name=name, hosts=hosts, description=description, user=user))
        logger.info("Created group '%s' with %d hosts", name, len(hosts))

    def get(self, name: str) -> GroupDefinition:
        """Load a group by name.

        Raises:
            GroupError: If the group does not exist.
        """
        group_path = self._group_path(name)
        if not group_path.exists():
            raise GroupError(f"Group '{name}' not found")
        return self._read_group(group_path)

    def update(
        self,
        name: str,
        hosts: list[str] | None = None,
        description: str | None = None,
        user: str | None = _UNSET,
    ) -> None:
        """Update fields of an existing group; pass ``user=None`` to clear it.

        Raises:
            GroupError: If the group does not exist.
        """
        group = self.get(name)
        if hosts is not None:
            group.hosts = hosts
        if description is not None:
            group.description = description
        if user is not _UNSET:
            group.user = user
        self._write_group(group)
        logger.info("Updated group '%s'", name)

    def list_groups(self) -> list[GroupDefinition]:
        """List all groups sorted by name; unreadable files are skipped."""
        groups = []
        for yaml_file in self.groups_dir.glob("*.yaml"):
            try:
                groups.append(self._read_group(yaml_file))
            except (GroupError, yaml.YAMLError, OSError) as e:
                logger.warning("Failed to load group from %s: %s", yaml_file, e)
        groups.sort(key=lambda g: g.name)
        return groups

    def delete(self, name: str) -> None:
        """Delete a group, clearing the default pointer if it referenced it.

        Raises:
            GroupError: If the group does not exist.
        """
        group_path = self._group_path(name)
        if not group_path.exists():
            raise GroupError(f"Group '{name}' not found")

        group_path.unlink()
        logger.info("Deleted group '%s'", name)
        if self.get_default() == name:
            self.unset_default()

    def set_default(self, name: str) -> None:
        """Set the default group.

        Raises:
            GroupError: If the group does not exist.
        """
        self.get(name)
        self.default_file.write_text(name)
        logger.info("Set default group to '%s'", name)

    def unset_default(self) -> None:
        if self.default_file.exists():
            self.default_file.unlink()
            logger.debug("Unset default group")

    def get_default(self) -> str | None:
        """Default group name, or None if unset or the group is gone."""
        if not self.default_file.exists():
            return None

        default_name = self.default_file.read_text().strip()
        if not default_name:
            return None

        if not self._group_path(default_name).exists():
            logger.warning("Default group '%s' no longer exists, clearing default", default_name)
            self.unset_default()
            return None
        return default_name

    def _write_group(self, group: GroupDefinition) -> None:
        data: dict[str, Any] = {
            "name": group.name,
            "hosts": group.hosts,
            "description": group.description,
        }
        if group.user is not None:
            data["user"] = group.user

        with self._group_path(group.name).open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def _read_group(self, group_path: Path) -> GroupDefinition:
        with group_path.open("r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise GroupError(f"Invalid group file format: {group_path}")

        return GroupDefinition(
            name=data.get("name", group_path.stem),
            hosts=data.get("hosts", []) or [],
            description=data.get("description", "") or "",
            user=data.get("user"),
        )
