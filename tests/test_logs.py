import io

from rich.console import Console

from dsd_util import logs as logs_module
from dsd_util.docker import DockerRuntime
from dsd_util.logs import LogStreamer, format_log_line


class FakeProcess:
    def __init__(self, stdout: str, stderr: str):
        self.stdout = io.StringIO(stdout)
        self.stderr = io.StringIO(stderr)
        self.terminated = False

    def poll(self):
        return 0

    def wait(self, timeout=None):
        return 0

    def terminate(self):
        self.terminated = True


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, no_color=True, width=200), buffer


def test_format_log_line():
    text = format_log_line("2024-01-01T00:00:00", "web", "GET / 200\n")
    assert text.plain == "[2024-01-01T00:00:00 | web] GET / 200"


def test_follow_prints_stdout_and_stderr_of_every_container(monkeypatch):
    outputs = {
        "web": ("GET / 200\n", "warning: slow\n"),
        "db": ("ready\n", ""),
    }
    commands = []

    def fake_popen(cmd, **kwargs):
        commands.append(cmd)
        return FakeProcess(*outputs[cmd[2]])

    monkeypatch.setattr(logs_module.subprocess, "Popen", fake_popen)
    monkeypatch.setattr(logs_module, "get_timestamp", lambda fmt: "TS")

    output, buffer = _console()
    streamer = LogStreamer(DockerRuntime(), tail=5, output=output)

    assert streamer.follow(["web", "db"]) == 0

    lines = buffer.getvalue().splitlines()
    assert sorted(lines) == [
        "[TS | db] ready",
        "[TS | web] GET / 200",
        "[TS | web] warning: slow",
    ]
    assert sorted(commands) == [
        ["docker", "logs", "db", "--tail", "5", "--follow"],
        ["docker", "logs", "web", "--tail", "5", "--follow"],
    ]


def test_follow_reports_containers_that_cannot_be_logged(monkeypatch):
    def failing_popen(cmd, **kwargs):
        raise OSError("no docker")

    monkeypatch.setattr(logs_module.subprocess, "Popen", failing_popen)

    output, buffer = _console()
    assert LogStreamer(DockerRuntime(), output=output).follow(["web"]) == 0
    assert "[ERROR] - Failed to log web" in buffer.getvalue()


def test_stop_terminates_running_processes():
    class Running(FakeProcess):
        def poll(self):
            return None if not self.terminated else 0

    process = Running("", "")
    streamer = LogStreamer(DockerRuntime())
    streamer._processes.append(process)

    streamer.stop()
    assert process.terminated


def test_interrupt_stops_followers_and_returns_130(monkeypatch):
    class Running(FakeProcess):
        def poll(self):
            return None if not self.terminated else 0

    class InterruptingConsole:
        def __init__(self):
            self.printed = []

        def print(self, *objects, **kwargs):
            if not self.printed:
                self.printed.append(objects)
                raise KeyboardInterrupt
            self.printed.append(objects)

    processes = []

    def fake_popen(cmd, **kwargs):
        process = Running("first line\n", "")
        processes.append(process)
        return process

    monkeypatch.setattr(logs_module.subprocess, "Popen", fake_popen)

    output = InterruptingConsole()
    streamer = LogStreamer(DockerRuntime(), output=output)

    assert streamer.follow(["web"]) == 130
    assert "Interrupted" in str(output.printed[-1])
    assert [p.terminated for p in processes] == [True]
