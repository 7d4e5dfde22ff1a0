"""fanrun group and subcommands."""

from __future__ import annotations

import sys

import click

from ._common import GROUP_NAME, _get_group_manager


def _host_list_from_args(hosts, hosts_file):
    from fanrun.hosts import HostResolutionError, parse_hosts_file

    if hosts:
        return [h.strip() for h in hosts.split(",") if h.strip()]
    if hosts_file:
        try:
            return parse_hosts_file(hosts_file)
        except HostResolutionError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    return None


@click.group()
@click.pass_context
def group(ctx):
    """Manage saved target groups."""
    pass


@group.command("create")
@click.argument("name", type=GROUP_NAME)
@click.option("--hosts", "-H", default=None, help="Comma-separated host list")
@click.option("--hosts-file", default=None, help="File with hosts (one per line)")
@click.option("-d", "--description", default="", help="Group description")
@click.option("--user", "-u", default=None, help="SSH username for this group")
def group_create(name, hosts, hosts_file, description, user):
    """Create a new target group."""
    from fanrun.groups import GroupError

    host_list = _host_list_from_args(hosts, hosts_file)
    if not host_list:
        click.echo("Error: No hosts provided.", err=True)
        sys.exit(1)

    try:
        _get_group_manager().create(name, host_list, description, user=user)
    except GroupError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Group '{name}' created with {len(host_list)} host(s).")


@group.command("update")
@click.argument("name", type=GROUP_NAME)
@click.option("--hosts", "-H", default=None, help="Comma-separated host list")
@click.option("--hosts-file", default=None, help="File with hosts (one per line)")
@click.option("-d", "--description", default=None, help="Group description")
@click.option("--user", "-u", default=None, help="SSH username for this group")
def group_update(name, hosts, hosts_file, description, user):
    """Update an existing target group."""
    from fanrun.groups import GroupError

    host_list = _host_list_from_args(hosts, hosts_file)
    if host_list is None and description is None and user is None:
        click.echo("Error: Nothing to update. Provide --hosts, --hosts-file, -d, or --user.", err=True)
        sys.exit(1)

    kwargs = {"hosts": host_list, "description": description}
    if user is not None:
        kwargs["user"] = user
    try:
        _get_group_manager().update(name, **kwargs)
    except GroupError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Group '{name}' updated.")


@group.command("list")
def group_list():
    """List all saved groups."""
    mgr = _get_group_manager()
    groups = mgr.list_groups()
    default_name = mgr.get_default()

    if not groups:
        click.echo("No saved groups.")
        return

    click.echo(f"  {'Name':<20} {'Hosts':>5}  {'Description':<40}")
    click.echo("-" * 72)
    for g in groups:
        marker = "* " if g.name == default_name else "  "
        click.echo(f"{marker}{g.name:<20} {len(g.hosts):>5}  {g.description or '':<40}")

    if default_name:
        click.echo("\n* = default group")


@group.command("show")
@click.argument("name", type=GROUP_NAME)
def group_show(name):
    """Show details of a saved group."""
    from fanrun.groups import GroupError

    mgr = _get_group_manager()
    try:
        g = mgr.get(name)
    except GroupError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Name:        {g.name}")
    click.echo(f"Description: {g.description or '-'}")
    click.echo(f"User:        {g.user or '-'}")
    click.echo(f"Default:     {'yes' if mgr.get_default() == g.name else 'no'}")
    click.echo(f"Hosts ({len(g.hosts)}):")
    for host in g.hosts:
        click.echo(f"  {host}")


@group.command("delete")
@click.argument("name", type=GROUP_NAME)
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
def group_delete(name, force):
    """Delete a saved group."""
    from fanrun.groups import GroupError

    if not force:
        click.confirm(f"Delete group '{name}'?", abort=True)
    try:
        _get_group_manager().delete(name)
    except GroupError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Group '{name}' deleted.")


@group.command("set-default")
@click.argument("name", type=GROUP_NAME)
def group_set_default(name):
    """Set the default target group."""
    from fanrun.groups import GroupError

    try:
        _get_group_manager().set_default(name)
    except GroupError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Default group set to '{name}'.")


@group.command("unset-default")
def group_unset_default():
    """Clear the default target group."""
    _get_group_manager().unset_default()
    click.echo("Default group cleared.")
