"""Target resolution with priority chain.

Resolves targets from CLI args, files, named groups, or config defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fanrun.engine.types import Target, parse_target
from fanrun.groups import GroupError, GroupManager

logger = logging.getLogger(__name__)


class HostResolutionError(Exception):
    """Error during host resolution."""

    pass


def parse_hosts_file(path: str | Path) -> list[str]:
    """Parse hosts file with one host per line.

    Comments (#) and blank lines are ignored.

    Raises:
        HostResolutionError: If file not found
    """
    file_path = Path(path)
    if not file_path.exists():
        raise HostResolutionError("Hosts file not found: %s" % file_path)

    hosts = []
    with file_path.open("r") as f:
        for line in f:
            if "#" in line:
                line = line[: line.index("#")]
            line = line.strip()
            if line:
                hosts.append(line)

    logger.debug("Parsed %d hosts from file: %s", len(hosts), file_path)
    return hosts


def resolve_hosts(
    hosts: str | None = None,
    hosts_file: str | None = None,
    group_name: str | None = None,
    group_manager: GroupManager | None = None,
    config_default_hosts: list[str] | None = None,
) -> list[str]:
    """Resolve hosts using priority chain.

    Priority:
    1. hosts (comma-separated CLI arg)
    2. hosts_file (path to file with one host per line)
    3. group_name (named group via GroupManager)
    4. Default group from GroupManager
    5. config_default_hosts (from config.yaml)
    6. Empty list (caller decides whether to error)

    Duplicates are kept; the engine does not deduplicate targets.

    Raises:
        HostResolutionError: If the hosts file or the named group does
            not exist.
    """
    if hosts:
        resolved = [h.strip() for h in hosts.split(",") if h.strip()]
        logger.debug("Resolved %d hosts from CLI arg", len(resolved))
        return resolved

    if hosts_file:
        return parse_hosts_file(hosts_file)

    if group_name and group_manager:
        try:
            resolved = group_manager.get(group_name).hosts
            logger.debug("Resolved %d hosts from group '%s'", len(resolved), group_name)
            return resolved
        except GroupError as e:
            raise HostResolutionError("Group '%s' not found" % group_name) from e

    if group_manager:
        try:
            default_name = group_manager.get_default()
            if default_name:
                resolved = group_manager.get(default_name).hosts
                logger.debug("Resolved %d hosts from default group '%s'", len(resolved), default_name)
                return resolved
        except GroupError as e:
            logger.debug("No default group available: %s", e)

    if config_default_hosts:
        logger.debug("Resolved %d hosts from config defaults", len(config_default_hosts))
        return list(config_default_hosts)

    logger.debug("No hosts resolved from any source")
    return []


def resolve_targets(
    hosts: str | None = None,
    hosts_file: str | None = None,
    group_name: str | None = None,
    group_manager: GroupManager | None = None,
    config_default_hosts: list[str] | None = None,
    via: str | None = None,
) -> list[Target]:
    """Resolve hosts (see :func:`resolve_hosts`) and parse them into targets.

    Raises:
        HostResolutionError: If an entry is not a valid target.
    """
    targets = []
    for entry in resolve_hosts(hosts, hosts_file, group_name, group_manager, config_default_hosts):
        try:
            targets.append(parse_target(entry, via=via))
        except ValueError as e:
            raise HostResolutionError(str(e)) from e
    return targets
