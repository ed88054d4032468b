#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Stack manager for docker-stack-deploy operations.
"""

from pathlib import Path
from typing import Optional

import yaml
from jinja2 import Environment, FileSystemLoader
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .docker import DockerError, DockerRuntime
from .logs import LogStreamer
from .models import Config

# Rich Console for beautiful output
console = Console()

DEFAULT_CONFIG_PATH = Path("~/.config/dsd-util/config.yaml")


# ============================================================================
# Core Stack Manager
# ============================================================================


class StackManager:
    """Manages docker-stack-deploy and the containers it deploys"""

    def __init__(self, config_path: Optional[Path] = None):
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        self.config_path = config_path.expanduser().resolve()
        self.config_dir = self.config_path.parent
        self.templates_dir = Path(__file__).parent / "templates"
        self.template_path = self.templates_dir / "compose.yaml.jinja2"
        self.output_path = self.config_dir / "_build" / "compose.yaml"
        self._config: Optional[Config] = None
        self._runtime: Optional[DockerRuntime] = None

    def load_config(self) -> Config:
        """Load and validate configuration from config.yaml

        A missing file means built-in defaults (still overridable from the
        environment).
        """
        if self._config is not None:
            return self._config

        data = {}
        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        self._config = Config(**data)
        return self._config

    @property
    def runtime(self) -> DockerRuntime:
        if self._runtime is None:
            config = self.load_config()
            self._runtime = DockerRuntime(
                config.docker.binary, config.docker.stack_label
            )
        return self._runtime

    def resolve_paths(self, config: Config) -> Config:
        """Make relative host paths relative to the config directory"""
        stacks_dir = Path(config.orchestrator.stacks_dir).expanduser()
        if not stacks_dir.is_absolute():
            stacks_dir = (self.config_dir / stacks_dir).resolve()
        config.orchestrator.stacks_dir = str(stacks_dir)
        return config

    def render_template(self, config: Config) -> str:
        """Render Jinja2 template with config"""
        env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        template = env.get_template(self.template_path.name)
        return template.render(**config.model_dump())

    def generate_compose_file(self) -> Config:
        """Generate compose.yaml from template"""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Loading configuration...", total=None)
            config = self.load_config()
            config = self.resolve_paths(config)

            progress.add_task("Rendering template...", total=None)
            output = self.render_template(config)

            # Ensure output directory exists
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

            progress.add_task(f"Writing to {self.output_path}...", total=None)
            with open(self.output_path, "w", encoding="utf-8") as f:
                f.write(output)

        console.print(
            Panel(
                f"[green]✓[/green] compose.yaml generated successfully\n\n"
                f"Project: {config.orchestrator.project}\n"
                f"Image: {config.orchestrator.image}\n"
                f"Stacks: {config.orchestrator.stacks_dir}",
                title="[bold green]Success[/bold green]",
                border_style="green",
            )
        )

        return config

    def run_docker_compose(self, args: list[str]) -> int:
        """Run docker compose against the orchestrator's compose file"""
        config = self.generate_compose_file()
        compose = self.runtime.compose_command(
            self.output_path, config.orchestrator.project
        )
        return self.runtime.run(compose + args, cwd=self.output_path.parent)

    def resolve_containers(
        self, containers: Optional[list[str]] = None, stack: Optional[str] = None
    ) -> list[str]:
        """Container names to act on.

        Priority: stack > explicit names > every running container
        """
        if stack:
            return self.runtime.list_stack_containers(stack)
        if containers:
            return list(containers)
        return [
            self.runtime.container_name(container_id)
            for container_id in self.runtime.list_containers()
        ]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def init(self, pull: bool = False) -> int:
        """Deploy docker-stack-deploy"""
        args = ["up", "-d"]
        if pull:
            args.extend(["--pull", "always"])
        return self.run_docker_compose(args)

    def logs(
        self,
        containers: Optional[list[str]] = None,
        stack: Optional[str] = None,
        tail: Optional[int] = None,
        color: bool = True,
    ) -> int:
        """Follow logs of the selected containers"""
        config = self.load_config()
        names = self.resolve_containers(containers, stack)
        if not names:
            console.print("[yellow]No containers to follow[/yellow]")
            return 0

        output = console if color else Console(no_color=True)
        streamer = LogStreamer(
            self.runtime,
            tail=config.logs.tail if tail is None else tail,
            timestamp_format=config.logs.timestamp_format,
            output=output,
        )
        return streamer.follow(names)

    def nuke(self, redeploy: bool = True) -> int:
        """Force remove every running container, then redeploy"""
        container_ids = self.runtime.list_containers()
        if container_ids:
            returncode = self.runtime.kill_containers(container_ids)
            if returncode != 0:
                return returncode
        else:
            console.print("[yellow]No running containers[/yellow]")

        if not redeploy:
            return 0
        return self.init()

    def restart(
        self, containers: Optional[list[str]] = None, stack: Optional[str] = None
    ) -> int:
        """Restart containers, or the orchestrator when none are given"""
        if not containers and not stack:
            return self.run_docker_compose(["restart"])

        names = self.resolve_containers(containers, stack)
        if not names:
            console.print(f"[yellow]No running containers in stack {stack}[/yellow]")
            return 0
        return self.runtime.restart_containers(names)

    def stats(
        self, containers: Optional[list[str]] = None, stack: Optional[str] = None
    ) -> Table:
        """Collect resource usage and state of containers into a table"""
        names = self.resolve_containers(containers, stack)

        table = Table(
            title="Container Stats",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Container", style="cyan", no_wrap=True)
        table.add_column("Status", style="green")
        table.add_column("Health")
        table.add_column("Restart")
        table.add_column("Uptime", style="yellow")
        table.add_column("CPU", justify="right")
        table.add_column("Memory", justify="right")
        table.add_column("Ports", style="dim")

        if not names:
            return table

        usage = {s.container_name: s for s in self.runtime.stats(names)}
        for state in self.runtime.inspect(names):
            stats = usage.get(state.container_name)
            table.add_row(
                state.container_name,
                state.status,
                state.health,
                state.restart_policy,
                state.uptime,
                stats.cpu if stats else "-",
                stats.memory if stats else "-",
                state.ports or "-",
            )

        return table

    def update(
        self,
        containers: Optional[list[str]] = None,
        stack: Optional[str] = None,
        restart: bool = True,
    ) -> int:
        """Pull newer images for containers and redeploy when any changed"""
        names = self.resolve_containers(containers, stack)

        pulled: dict[str, bool] = {}
        updated: list[str] = []
        failed: list[str] = []
        for name in names:
            try:
                image = self.runtime.container_image(name)
                if image not in pulled:
                    console.print(f"[cyan]Pulling image for {name}: {image}[/cyan]")
                    pulled[image] = self.runtime.pull_image(image)
            except DockerError as e:
                console.print(f"[red]Error: {e}[/red]")
                failed.append(name)
                continue

            if pulled[image]:
                updated.append(name)

        summary = (
            f"Updated: {', '.join(updated)}" if updated else "All images up to date"
        )
        if failed:
            summary += f"\n[red]Failed: {', '.join(failed)}[/red]"
        console.print(
            Panel(
                summary,
                title="[bold]Update[/bold]",
                border_style="red" if failed else "green",
            )
        )

        if updated and restart:
            returncode = self.restart()
            if returncode != 0:
                return returncode

        return 1 if failed else 0
