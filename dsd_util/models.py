#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Configuration models and parsed docker records.
"""

import re
from datetime import datetime, timezone
from typing import Literal, Optional, Tuple, Type

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# ============================================================================
# Pydantic Models for Configuration
# ============================================================================


class DockerConfig(BaseModel):
    """Container runtime configuration"""

    binary: str = Field(default="docker", description="Docker CLI executable")
    stack_label: str = Field(
        default="com.docker.compose.project",
        description="Label identifying the compose stack a container belongs to",
    )


def _env_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class OrchestratorConfig(BaseModel):
    """docker-stack-deploy service configuration"""

    project: str = Field(
        default="docker-stack-deploy", description="Compose project name"
    )
    container_name: str = Field(
        default="docker-stack-deploy", description="Orchestrator container name"
    )
    image: str = Field(
        default="docker-stack-deploy:latest", description="Orchestrator image"
    )
    stacks_dir: str = Field(
        default="./stacks", description="Directory holding the stack definitions"
    )
    docker_socket: str = Field(
        default="/var/run/docker.sock", description="Docker socket to mount"
    )
    restart_policy: Literal["no", "always", "on-failure", "unless-stopped"] = Field(
        default="unless-stopped", description="Orchestrator restart policy"
    )
    environment: dict[str, str] = Field(
        default_factory=dict, description="Extra orchestrator environment"
    )

    @field_validator("project")
    @classmethod
    def validate_project(cls, v: str) -> str:
        """Validate compose project name"""
        if not re.match(r"^[a-z0-9][a-z0-9_-]*$", v):
            raise ValueError(
                "Project must be lowercase letters, digits, '-' or '_' "
                "and start with a letter or digit"
            )
        return v

    @field_validator("environment", mode="before")
    @classmethod
    def stringify_environment(cls, v: object) -> object:
        """Accept YAML numbers and booleans as environment values"""
        if not isinstance(v, dict):
            return v
        return {key: _env_value(value) for key, value in v.items()}

    @field_validator("container_name")
    @classmethod
    def validate_container_name(cls, v: str) -> str:
        """Validate docker container name"""
        if not re.match(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]+$", v):
            raise ValueError(f"Invalid container name: {v!r}")
        return v


class LogsConfig(BaseModel):
    """Log following configuration"""

    tail: int = Field(default=10, ge=0, description="Lines of history per container")
    timestamp_format: str = Field(
        default="%Y-%m-%dT%H:%M:%S", description="strftime format of line prefixes"
    )


class Config(BaseSettings):
    """Main configuration model"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DSD_UTIL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    docker: DockerConfig = Field(default_factory=DockerConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    logs: LogsConfig = Field(default_factory=LogsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize settings sources priority.
        Priority: env vars > .env file > YAML (init) > file secrets > defaults
        """
        return env_settings, dotenv_settings, init_settings, file_secret_settings


# ============================================================================
# Records parsed from docker output
# ============================================================================

# docker prints nanoseconds; datetime only takes microseconds
_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_started_at(value: str) -> datetime:
    """Parse docker's RFC 3339 ``State.StartedAt`` value"""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(
        lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1
    )
    try:
        started = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Failed to parse start time {value!r}: {e}")
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    return started


def format_uptime(started_at: str, now: Optional[datetime] = None) -> str:
    """Format time elapsed since ``started_at`` as e.g. ``2D 3H 15m``"""
    if now is None:
        now = datetime.now(timezone.utc)
    elapsed = now - parse_started_at(started_at)

    # clock skew can put StartedAt slightly in the future
    total_minutes = max(0, int(elapsed.total_seconds() // 60))
    days, rest = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(rest, 60)

    if days > 0:
        return f"{days}D {hours}H {minutes}m"
    if hours > 0:
        return f"{hours}H {minutes}m"
    return f"{minutes}m"


class StatsData(BaseModel):
    """Resource usage of one container"""

    container_name: str
    cpu: str
    memory: str

    @classmethod
    def parse(cls, line: str) -> "StatsData":
        """Parse a ``{{.Name}} {{.CPUPerc}} {{.MemUsage}}`` line"""
        parsed = line.strip().lstrip("/").split()
        if len(parsed) < 3:
            raise ValueError(f"Unexpected stats line: {line!r}")
        return cls(container_name=parsed[0], cpu=parsed[1], memory=parsed[2])


class InspectData(BaseModel):
    """State of one container as reported by docker inspect"""

    container_name: str
    status: str
    restart_policy: str
    health: str
    uptime: str
    ports: str

    @classmethod
    def parse(cls, line: str, now: Optional[datetime] = None) -> "InspectData":
        """Parse a line produced by ``DockerRuntime.INSPECT_FORMAT``"""
        parsed = line.strip().lstrip("/").split(",", 5)
        if len(parsed) < 6:
            raise ValueError(f"Unexpected inspect line: {line!r}")
        return cls(
            container_name=parsed[0],
            status=parsed[1],
            restart_policy=parsed[2],
            health=parsed[3],
            uptime=format_uptime(parsed[4], now=now),
            ports=parsed[5].strip(),
        )
