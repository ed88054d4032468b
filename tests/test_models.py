from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from dsd_util.models import (
    Config,
    InspectData,
    OrchestratorConfig,
    StatsData,
    format_uptime,
)

NOW = datetime(2024, 1, 3, 5, 30, tzinfo=timezone.utc)


def test_config_defaults():
    config = Config()
    assert config.docker.binary == "docker"
    assert config.docker.stack_label == "com.docker.compose.project"
    assert config.orchestrator.project == "docker-stack-deploy"
    assert config.logs.tail == 10


def test_env_overrides_yaml_values(monkeypatch):
    monkeypatch.setenv("DSD_UTIL_LOGS__TAIL", "50")
    config = Config(logs={"tail": 5}, docker={"binary": "podman"})
    assert config.logs.tail == 50
    assert config.docker.binary == "podman"


@pytest.mark.parametrize("project", ["Upper", "-leading", "with space", ""])
def test_project_name_validation_rejects_invalid_values(project: str):
    with pytest.raises(ValidationError):
        OrchestratorConfig(project=project)


@pytest.mark.parametrize("name", ["/slash", "a", "bad name"])
def test_container_name_validation_rejects_invalid_values(name: str):
    with pytest.raises(ValidationError):
        OrchestratorConfig(container_name=name)


def test_environment_accepts_yaml_scalars():
    config = OrchestratorConfig(
        environment={"PORT": 8080, "RATIO": 0.5, "DEBUG": True, "QUIET": False}
    )
    assert config.environment == {
        "PORT": "8080",
        "RATIO": "0.5",
        "DEBUG": "true",
        "QUIET": "false",
    }


def test_restart_policy_must_be_known():
    with pytest.raises(ValidationError):
        OrchestratorConfig(restart_policy="sometimes")


def test_negative_tail_is_rejected():
    with pytest.raises(ValidationError):
        Config(logs={"tail": -1})


@pytest.mark.parametrize(
    ("started_at", "expected"),
    [
        ("2024-01-01T02:14:59.123456789Z", "2D 3H 15m"),
        ("2024-01-03T03:00:00Z", "2H 30m"),
        ("2024-01-03T05:25:30.5Z", "4m"),
        ("2024-01-03T06:00:00+02:00", "1H 30m"),
        ("2024-01-03T05:30:00Z", "0m"),
        ("2024-01-03T05:30:20Z", "0m"),
    ],
)
def test_format_uptime(started_at: str, expected: str):
    assert format_uptime(started_at, now=NOW) == expected


def test_format_uptime_rejects_garbage():
    with pytest.raises(ValueError):
        format_uptime("yesterday", now=NOW)


def test_stats_data_parse_strips_slash_and_keeps_memory_usage():
    stats = StatsData.parse("/web 0.50% 12.3MiB / 1.9GiB\n")
    assert stats.container_name == "web"
    assert stats.cpu == "0.50%"
    assert stats.memory == "12.3MiB"


def test_stats_data_parse_rejects_short_lines():
    with pytest.raises(ValueError):
        StatsData.parse("web 0.50%")


def test_inspect_data_parse():
    data = InspectData.parse(
        "/web,running,unless-stopped,healthy,2024-01-03T03:00:00Z,"
        "8080->80/tcp 443/tcp \n",
        now=NOW,
    )
    assert data.container_name == "web"
    assert data.status == "running"
    assert data.restart_policy == "unless-stopped"
    assert data.health == "healthy"
    assert data.uptime == "2H 30m"
    assert data.ports == "8080->80/tcp 443/tcp"


def test_inspect_data_parse_allows_empty_ports():
    data = InspectData.parse("/db,exited,no,none,2024-01-03T05:00:00Z,", now=NOW)
    assert data.ports == ""
    assert data.uptime == "30m"


def test_inspect_data_parse_rejects_short_lines():
    with pytest.raises(ValueError):
        InspectData.parse("/web,running,no", now=NOW)
