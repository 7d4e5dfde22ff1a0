"""fanrun run and tasks commands."""

from __future__ import annotations

import sys

import click

from ._common import (
    TASK_NAME,
    _get_config,
    _parse_options,
    _resolve_group_user,
    _resolve_targets_or_exit,
    dry_run_option,
    host_options,
)


@click.command()
@click.argument("task_name", type=TASK_NAME)
@host_options
@click.option("--via", "-J", default=None, help="Jump host to route every session through")
@click.option("--capacity", "-c", type=int, default=None,
              help="Maximum concurrent operations (default 32)")
@click.option("--timeout", "-t", type=float, default=None,
              help="Per-target timeout in seconds (default 120)")
@click.option("--poll-interval", type=float, default=None,
              help="Longest wait between drain passes in seconds")
@click.option("--progress/--no-progress", default=None, help="Report percent complete")
@click.option("--user", "-u", default=None, help="SSH username for remote targets")
@click.option("--key", "-k", "ssh_key", default=None, help="SSH private key for remote targets")
@click.option("--option", "-o", "options", multiple=True,
              help="Task option as key=value (repeatable)")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]),
              default="table", help="Report format")
@dry_run_option
@click.pass_context
def run(ctx, task_name, hosts, hosts_file, group_name, via, capacity, timeout,
        poll_interval, progress, user, ssh_key, options, output_format, dry_run):
    """Run a task on every target and report the results.

    Exits non-zero if any target failed or timed out.
    """
    from fanrun.bootstrap import get_task, init_fanrun
    from fanrun.engine import Credential, OperationError, PoolError, run_batch
    from fanrun.utils.cli_formatters import format_results_json, format_results_table

    v = init_fanrun()
    try:
        task = get_task(task_name, v=v)
    except ValueError as e:
        click.echo("Error: %s" % e, err=True)
        sys.exit(1)

    config = _get_config()
    targets, group_mgr = _resolve_targets_or_exit(hosts, hosts_file, group_name, config, via=via, v=v)

    task_options = config.task_options(task_name)
    task_options.update(_parse_options(options))
    try:
        task_options = task.resolve_options(task_options)
        settings = config.engine_settings(
            capacity=capacity, timeout=timeout,
            poll_interval=poll_interval, show_progress=progress,
        )
    except (OperationError, ValueError) as e:
        click.echo("Error: %s" % e, err=True)
        sys.exit(1)

    if user is None:
        user = _resolve_group_user(group_name, hosts, hosts_file, group_mgr) or config.ssh_user
    credential = Credential(user=user, key_file=ssh_key or config.ssh_key)

    verbose = bool((ctx.obj or {}).get("verbose"))
    try:
        report = run_batch(
            targets,
            task.run,
            settings=settings,
            credential=credential,
            options=task_options,
            ssh_options=config.ssh_options,
            verbose=verbose,
            dry_run=dry_run,
        )
    except PoolError as e:
        click.echo("Error: %s" % e, err=True)
        sys.exit(1)

    if output_format == "json":
        click.echo(format_results_json(report))
    else:
        click.echo(format_results_table(report))

    if not report.all_ok:
        sys.exit(1)


@click.command("tasks")
def tasks_cmd():
    """List available tasks."""
    from fanrun.bootstrap import init_fanrun, list_tasks
    from fanrun.utils.cli_formatters import format_task_table

    v = init_fanrun()
    click.echo(format_task_table(list_tasks(v=v)))
