#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Helper commands around docker-stack-deploy and docker.
"""

from .commands import app, main
from .docker import DockerError, DockerRuntime
from .logs import LogStreamer
from .manager import StackManager
from .models import (
    Config,
    DockerConfig,
    InspectData,
    LogsConfig,
    OrchestratorConfig,
    StatsData,
    format_uptime,
)

__all__ = [
    # Commands
    "app",
    "main",
    # Manager
    "StackManager",
    # Docker
    "DockerError",
    "DockerRuntime",
    "LogStreamer",
    # Models
    "Config",
    "DockerConfig",
    "OrchestratorConfig",
    "LogsConfig",
    "StatsData",
    "InspectData",
    "format_uptime",
]
