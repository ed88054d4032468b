#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Thin wrapper around the docker CLI.
"""

import subprocess
from pathlib import Path
from typing import Optional

from rich.console import Console

from .models import InspectData, StatsData

# Rich Console for beautiful output
console = Console()

NEWER_IMAGE_MARKER = "Status: Downloaded newer image"


class DockerError(Exception):
    """Raised when a docker invocation cannot be run or fails"""


class DockerRuntime:
    """Runs docker commands for the helper"""

    STATS_FORMAT = "{{.Name}} {{.CPUPerc}} {{.MemUsage}}"
    INSPECT_FORMAT = (
        "{{.Name}},"
        "{{.State.Status}},"
        "{{.HostConfig.RestartPolicy.Name}},"
        "{{if .State.Health}}{{.State.Health.Status}}{{else}}none{{end}},"
        "{{.State.StartedAt}},"
        "{{range $p, $b := .NetworkSettings.Ports}}"
        "{{if $b}}{{(index $b 0).HostPort}}->{{end}}{{$p}} {{end}}"
    )

    def __init__(
        self, binary: str = "docker", stack_label: str = "com.docker.compose.project"
    ):
        self.binary = binary
        self.stack_label = stack_label

    def command(self, *args: str) -> list[str]:
        return [self.binary, *args]

    def capture(self, args: list[str], error: str) -> str:
        """Run a docker command and return its stdout"""
        cmd = self.command(*args)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            raise DockerError(f"{self.binary} not found")

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise DockerError(f"{error}: {detail}" if detail else error)
        return result.stdout

    def run(self, args: list[str], cwd: Optional[Path] = None) -> int:
        """Run a docker command attached to the terminal"""
        cmd = self.command(*args)
        console.print(f"\n[dim]Running: {' '.join(cmd)}[/dim]\n")

        try:
            result = subprocess.run(cmd, cwd=cwd)
            return result.returncode
        except FileNotFoundError:
            raise DockerError(f"{self.binary} not found")
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            return 130

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def list_containers(self) -> list[str]:
        """List ids of running containers"""
        console.print("[magenta]Listing docker containers...[/magenta]")
        output = self.capture(["ps", "-q"], "Failed to list docker containers")
        return output.split()

    def list_stack_containers(self, stack: str) -> list[str]:
        """List names of running containers in a compose stack"""
        output = self.capture(
            ["ps", "-q", "--filter", f"label={self.stack_label}={stack}"],
            f"Failed to list containers in stack: {stack}",
        )
        return [self.container_name(container_id) for container_id in output.split()]

    def container_name(self, container_id: str) -> str:
        output = self.capture(
            ["inspect", "--format", "{{.Name}}", container_id],
            "Failed to inspect container",
        )
        # Docker names start with '/'
        return output.strip().lstrip("/")

    def container_image(self, container: str) -> str:
        output = self.capture(
            ["inspect", "--format", "{{.Config.Image}}", container],
            "Failed to inspect container",
        )
        return output.strip()

    def kill_containers(self, container_ids: list[str]) -> int:
        """Force remove containers"""
        console.print("[yellow]Killing docker containers...[/yellow]")
        return self.run(["rm", "-f", *container_ids])

    def restart_containers(self, containers: list[str]) -> int:
        return self.run(["restart", *containers])

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def pull_image(self, image: str) -> bool:
        """Pull an image, echoing docker's progress.

        Returns:
            True when docker downloaded a newer image
        """
        is_updated = False
        try:
            process = subprocess.Popen(
                self.command("pull", image),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except FileNotFoundError:
            raise DockerError(f"{self.binary} not found")

        assert process.stdout is not None
        with process.stdout:
            for line in process.stdout:
                line = line.rstrip("\n")
                console.print(line, markup=False, highlight=False)
                if NEWER_IMAGE_MARKER in line:
                    is_updated = True

        if process.wait() != 0:
            raise DockerError(f"Failed to pull image: {image}")
        return is_updated

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def stats(self, containers: list[str]) -> list[StatsData]:
        output = self.capture(
            ["stats", "--no-stream", "--format", self.STATS_FORMAT, *containers],
            "Failed to read container stats",
        )
        return [StatsData.parse(line) for line in output.splitlines() if line.strip()]

    def inspect(self, containers: list[str]) -> list[InspectData]:
        output = self.capture(
            ["inspect", "--format", self.INSPECT_FORMAT, *containers],
            "Failed to inspect containers",
        )
        return [
            InspectData.parse(line) for line in output.splitlines() if line.strip()
        ]

    def logs_command(self, container: str, tail: int) -> list[str]:
        return self.command("logs", container, "--tail", str(tail), "--follow")

    def compose_command(self, compose_file: Path, project: str) -> list[str]:
        return ["compose", "-f", str(compose_file), "-p", project]
