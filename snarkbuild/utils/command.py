from __future__ import annotations

import asyncio
from dataclasses import dataclass

import bittensor as bt

from snarkbuild.errors import CommandError


@dataclass
class CommandResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str


async def run_command(*command: str, check: bool = True) -> CommandResult:
    """
    Run an external tool without blocking the event loop.

    No timeout is applied; a tool that never exits keeps its caller suspended.

    Args:
        *command (str): The executable followed by its arguments.
        check (bool): Whether a non-zero exit status raises.

    Returns:
        CommandResult: The exit status and decoded output of the process.

    Raises:
        CommandError: If the executable is missing, or exits non-zero and
        `check` is set.
    """
    args = [str(part) for part in command]
    bt.logging.trace(f"Running command: {' '.join(args)}")
    try:
        # trunk-ignore(bandit/B603)
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        raise CommandError(args, None, str(e)) from e

    stdout, stderr = await process.communicate()
    result = CommandResult(
        command=args,
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    bt.logging.trace(f"Command stdout: {result.stdout}")
    bt.logging.trace(f"Command stderr: {result.stderr}")

    if check and result.returncode != 0:
        raise CommandError(
            args, result.returncode, result.stderr.strip() or result.stdout.strip()
        )
    return result
