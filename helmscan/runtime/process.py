"""Async subprocess execution with optional timeout."""

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence

from helmscan.models.model_scanner import CommandResult

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127


async def run_command(
    cmd: Sequence[str],
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> CommandResult:
    """Run a command, capturing stdout and stderr.

    A non-zero exit is reported in the result, never raised.

    Args:
        cmd: Command and arguments
        timeout: Timeout in seconds (None waits forever)
        env: Extra environment variables merged over the current environment
        cwd: Working directory

    Returns:
        CommandResult with decoded output; timed_out is set if the process
        was killed after the timeout
    """
    logger.debug(f"Running: {' '.join(cmd)}")

    process_env = None
    if env:
        process_env = os.environ.copy()
        process_env.update(env)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=process_env,
            cwd=cwd,
        )
    except FileNotFoundError as e:
        logger.debug(f"Command not found: {cmd[0]}")
        return CommandResult(returncode=COMMAND_NOT_FOUND, stdout="", stderr=str(e))

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        return CommandResult(
            returncode=-1,
            stdout="",
            stderr=f"Command timed out after {timeout} seconds",
            timed_out=True,
        )

    return CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
