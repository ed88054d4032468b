#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Follow the logs of several containers at once.

Every container gets a worker thread running ``docker logs --follow``; each
of its output streams is read by its own thread. Lines are funnelled through
a queue so only the main thread writes to the console.
"""

import queue
import subprocess
import threading
from datetime import datetime
from typing import IO, Optional

from rich.console import Console
from rich.text import Text

from .docker import DockerRuntime

console = Console()


def get_timestamp(fmt: str = "%Y-%m-%dT%H:%M:%S") -> str:
    """Current local time in readable format"""
    return datetime.now().strftime(fmt)


def format_log_line(timestamp: str, container: str, line: str) -> Text:
    """Build ``[timestamp | container] line``"""
    text = Text("[")
    text.append(timestamp, style="bold cyan")
    text.append(" | ")
    text.append(container, style="bold green")
    text.append("] ")
    text.append(line.rstrip("\r\n"))
    return text


def format_error_line(container: str) -> Text:
    return Text(f"[ERROR] - Failed to log {container}", style="bold red")


class LogStreamer:
    """Multiplexes ``docker logs --follow`` output of many containers"""

    def __init__(
        self,
        runtime: DockerRuntime,
        tail: int = 10,
        timestamp_format: str = "%Y-%m-%dT%H:%M:%S",
        output: Optional[Console] = None,
    ):
        self.runtime = runtime
        self.tail = tail
        self.timestamp_format = timestamp_format
        self.output = output or console
        self._lines: "queue.Queue[Text]" = queue.Queue()
        self._processes: list[subprocess.Popen] = []
        self._lock = threading.Lock()

    def follow(self, containers: list[str]) -> int:
        """Print log lines until every stream ends or the user interrupts"""
        workers = [
            threading.Thread(target=self._follow_container, args=(name,), daemon=True)
            for name in containers
        ]
        for worker in workers:
            worker.start()

        try:
            while any(w.is_alive() for w in workers) or not self._lines.empty():
                try:
                    line = self._lines.get(timeout=0.1)
                except queue.Empty:
                    continue
                self.output.print(line, highlight=False, soft_wrap=True)
        except KeyboardInterrupt:
            self.output.print("\n[yellow]Interrupted by user[/yellow]")
            return 130
        finally:
            self.stop()

        return 0

    def stop(self) -> None:
        """Terminate every log process still running"""
        with self._lock:
            processes = list(self._processes)
        for process in processes:
            if process.poll() is None:
                process.terminate()
                try:
                    process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    process.kill()

    def _follow_container(self, container: str) -> None:
        try:
            process = subprocess.Popen(
                self.runtime.logs_command(container, self.tail),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError:
            self._lines.put(format_error_line(container))
            return

        with self._lock:
            self._processes.append(process)

        readers = [
            threading.Thread(
                target=self._read_stream, args=(container, stream), daemon=True
            )
            for stream in (process.stdout, process.stderr)
            if stream is not None
        ]
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join()

        process.wait()

    def _read_stream(self, container: str, stream: IO[str]) -> None:
        with stream:
            for line in stream:
                self._lines.put(
                    format_log_line(
                        get_timestamp(self.timestamp_format), container, line
                    )
                )
