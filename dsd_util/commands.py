#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CLI commands for dsd-util.
"""

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from typer.core import TyperGroup

from .manager import StackManager

console = Console()
app = typer.Typer(
    name="dsd-util",
    help="Helper commands around docker-stack-deploy and docker",
    add_completion=False,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

ContainersArg = Annotated[
    Optional[list[str]],
    typer.Argument(help="Containers to act on (default: all running)"),
]
StackOption = Annotated[
    Optional[str],
    typer.Option("-s", "--stack", help="Act on every container of a compose stack"),
]


def _manager(ctx: typer.Context) -> StackManager:
    return ctx.obj


@app.callback()
def callback(
    ctx: typer.Context,
    config: Annotated[
        Optional[Path],
        typer.Option(
            "-c",
            "--config",
            envvar="DSD_UTIL_CONFIG",
            help="Path to config.yaml",
        ),
    ] = None,
):
    """Helper commands around docker-stack-deploy and docker"""
    ctx.obj = StackManager(config)


# ============================================================================
# CLI Commands
# ============================================================================


@app.command()
def init(
    ctx: typer.Context,
    pull: Annotated[
        bool, typer.Option("--pull", help="Pull the orchestrator image first")
    ] = False,
):
    """Deploy docker-stack-deploy"""
    try:
        returncode = _manager(ctx).init(pull=pull)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    sys.exit(returncode)


@app.command()
def logs(
    ctx: typer.Context,
    containers: ContainersArg = None,
    stack: StackOption = None,
    tail: Annotated[
        Optional[int],
        typer.Option("-n", "--tail", min=0, help="Number of lines to show"),
    ] = None,
    no_color: Annotated[
        bool, typer.Option("--no-color", help="Disable colored output")
    ] = False,
):
    """Follow container logs"""
    try:
        returncode = _manager(ctx).logs(
            containers, stack=stack, tail=tail, color=not no_color
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    sys.exit(returncode)


@app.command()
def nuke(
    ctx: typer.Context,
    yes: Annotated[
        bool, typer.Option("-y", "--yes", help="Do not ask for confirmation")
    ] = False,
    no_redeploy: Annotated[
        bool, typer.Option("--no-redeploy", help="Only remove containers")
    ] = False,
):
    """Force remove all running containers and redeploy"""
    if not yes and not typer.confirm("Remove ALL running containers?"):
        console.print("[yellow]Aborted[/yellow]")
        raise typer.Exit(1)

    try:
        returncode = _manager(ctx).nuke(redeploy=not no_redeploy)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    sys.exit(returncode)


@app.command()
def restart(
    ctx: typer.Context,
    containers: ContainersArg = None,
    stack: StackOption = None,
):
    """Restart containers (default: docker-stack-deploy itself)"""
    try:
        returncode = _manager(ctx).restart(containers, stack=stack)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    sys.exit(returncode)


@app.command()
def stats(
    ctx: typer.Context,
    containers: ContainersArg = None,
    stack: StackOption = None,
):
    """Show container resource usage and state"""
    try:
        table = _manager(ctx).stats(containers, stack=stack)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not table.row_count:
        console.print("[yellow]No containers are currently running[/yellow]")
        return

    console.print()
    console.print(table)


@app.command()
def update(
    ctx: typer.Context,
    containers: ContainersArg = None,
    stack: StackOption = None,
    no_restart: Annotated[
        bool,
        typer.Option("--no-restart", help="Do not restart docker-stack-deploy"),
    ] = False,
):
    """Pull newer images and redeploy"""
    try:
        returncode = _manager(ctx).update(
            containers, stack=stack, restart=not no_restart
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    sys.exit(returncode)


@app.command("help")
def help_(
    ctx: typer.Context,
    command: Annotated[
        Optional[str], typer.Argument(help="Command to show help for")
    ] = None,
):
    """Show this message or the help of a command"""
    parent = ctx.parent
    if parent is None:
        raise typer.Exit(2)

    if command is None:
        typer.echo(parent.get_help())
        return

    group = parent.command
    if not isinstance(group, TyperGroup):
        raise typer.Exit(2)
    target = group.get_command(parent, command)
    if target is None:
        console.print(f"[red]Error: No such command '{command}'[/red]")
        raise typer.Exit(2)

    with target.make_context(command, [], parent=parent, resilient_parsing=True) as sub:
        typer.echo(target.get_help(sub))


def main():
    """Main entry point"""
    app()
