"""Adapters for external processes: helm and the container runtime."""

from helmscan.runtime.base import ContainerRuntime, Renderer
from helmscan.runtime.docker_client import DockerCliRuntime
from helmscan.runtime.process import run_command
from helmscan.runtime.renderer import HelmRenderer

__all__ = [
    "ContainerRuntime",
    "DockerCliRuntime",
    "HelmRenderer",
    "Renderer",
    "run_command",
]
