"""Shared CLI infrastructure: utilities, Click types, decorators."""

from __future__ import annotations

import logging
import sys

import click

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool):
    """Configure logging based on verbosity.

    Uses explicit handler setup instead of ``logging.basicConfig`` which
    is silently a no-op when the root logger already has handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    fmt = ("%(asctime)s [%(levelname)s] %(name)s: %(message)s" if verbose
           else "%(message)s")

    root = logging.getLogger()
    root.setLevel(level)
    # Remove any handlers that may have been added by library imports
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))
    root.addHandler(handler)


def _parse_options(options: tuple[str, ...]) -> dict:
    """Parse --option key=value pairs into a dict.

    Values are auto-coerced to int/float/bool where possible.
    """
    from fanrun.utils import coerce_value

    result = {}
    for opt in options:
        if "=" not in opt:
            click.echo("Error: --option must be key=value, got: %s" % opt, err=True)
            sys.exit(1)
        key, _, value = opt.partition("=")
        key = key.strip()
        if not key:
            click.echo("Error: --option has empty key: %s" % opt, err=True)
            sys.exit(1)
        result[key] = coerce_value(value.strip())
    return result


def _get_config(config_path=None):
    from fanrun.config import FanrunConfig
    return FanrunConfig(config_path) if config_path else FanrunConfig()


def _get_group_manager(v=None):
    """Create a GroupManager using the SAF config root."""
    from fanrun.config import get_config_root
    from fanrun.groups import GroupManager
    return GroupManager(get_config_root(v))


def _resolve_group_user(group_name, hosts, hosts_file, group_mgr):
    """SSH user of the group the targets came from, if any."""
    from fanrun.groups import GroupError

    if hosts or hosts_file:
        return None
    name = group_name or group_mgr.get_default()
    if not name:
        return None
    try:
        return group_mgr.get(name).user
    except GroupError:
        return None


def _resolve_targets_or_exit(hosts, hosts_file, group_name, config, via=None, v=None):
    """Resolve targets from CLI args; exit if none are found.

    Returns:
        Tuple of (targets, group_mgr).
    """
    from fanrun.hosts import HostResolutionError, resolve_targets

    group_mgr = _get_group_manager(v)
    try:
        targets = resolve_targets(
            hosts=hosts,
            hosts_file=hosts_file,
            group_name=group_name,
            group_manager=group_mgr,
            config_default_hosts=config.default_hosts,
            via=via,
        )
    except HostResolutionError as e:
        click.echo("Error: %s" % e, err=True)
        sys.exit(1)
    if not targets:
        click.echo("Error: No hosts specified. Use --hosts or configure defaults.", err=True)
        sys.exit(1)
    return targets, group_mgr


class TaskNameType(click.ParamType):
    """Click parameter type with shell completion for task names."""

    name = "task"

    def shell_complete(self, ctx, param, incomplete):
        try:
            from fanrun.bootstrap import list_tasks
            return [
                click.shell_completion.CompletionItem(t.task_name)
                for t in list_tasks()
                if t.task_name.startswith(incomplete)
            ]
        except Exception:
            return []


TASK_NAME = TaskNameType()


class GroupNameType(click.ParamType):
    """Click parameter type with shell completion for group names."""

    name = "group"

    def shell_complete(self, ctx, param, incomplete):
        try:
            mgr = _get_group_manager()
            return [
                click.shell_completion.CompletionItem(g.name)
                for g in mgr.list_groups()
                if g.name.startswith(incomplete)
            ]
        except Exception:
            return []


GROUP_NAME = GroupNameType()


def host_options(f):
    """Common host-targeting options: --hosts, --hosts-file, --group."""
    f = click.option("--group", "-g", "group_name", default=None, type=GROUP_NAME,
                     help="Use a saved target group by name")(f)
    f = click.option("--hosts-file", default=None,
                     help="File with hosts (one per line, # comments)")(f)
    f = click.option("--hosts", "-H", default=None,
                     help="Comma-separated host list (host or host:port)")(f)
    return f


def dry_run_option(f):
    """Common --dry-run flag."""
    return click.option("--dry-run", "-n", is_flag=True,
                        help="Show what would be done")(f)
