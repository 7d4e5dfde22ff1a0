"""fanrun CLI: run a task across many hosts with bounded concurrency."""

from __future__ import annotations

import click

from fanrun import __version__
from ._common import _setup_logging
from ._group import group
from ._run import run, tasks_cmd


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose/debug output")
@click.version_option(__version__, prog_name="fanrun")
@click.pass_context
def main(ctx, verbose):
    """fanrun: fan a task out to many hosts at once."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose)


main.add_command(run)
main.add_command(tasks_cmd)
main.add_command(group)
