"""
This module provides utility functions for running FFmpeg and other external tools.
"""

import os
import shlex
import subprocess
from typing import List, Optional, Union

from loguru import logger


def null_device() -> str:
    """Returns the platform's discard sink used as the output of the analysis pass."""
    return "NUL" if os.name == "nt" else "/dev/null"


def format_cmd(cmd_list: List[str]) -> str:
    """Quotes and joins a command list the way the current platform's shell expects."""
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)


def run_cmd(
    cmd_parts: Union[str, List[str]],
    show_cmd: bool = False,
) -> Optional[subprocess.CompletedProcess]:
    """
    Executes an external command and captures its output.

    This is a wrapper around Python's `subprocess.run` that adds logging. Both
    stdout and stderr are read while the process runs, so a chatty child such as
    FFmpeg can never block on a full pipe, and the call only returns once the
    process has exited and both streams are drained.

    Args:
        cmd_parts: The command to execute, as a single string or a list of strings.
                   A list is preferred for safety (avoids shell injection).
        show_cmd: If True, the command will be logged at the DEBUG level before execution.

    Returns:
        A `subprocess.CompletedProcess` object containing the return code, stdout,
        and stderr. Returns `None` if the command could not be started (e.g.,
        `FileNotFoundError`).
    """
    cmd_list: List[str]

    if isinstance(cmd_parts, str):
        try:
            cmd_list = shlex.split(cmd_parts)
        except ValueError as e:
            logger.error(f"Error splitting command string with shlex: '{cmd_parts}'. Error: {e}")
            return None
    else:
        cmd_list = [str(part) for part in cmd_parts]

    if not cmd_list:
        logger.error("run_cmd received an empty command list.")
        return None

    if show_cmd:
        logger.debug(f"Executing: {format_cmd(cmd_list)}")

    try:
        result = subprocess.run(
            cmd_list,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            shell=False,
        )
    except FileNotFoundError:
        logger.error(
            f"Error: Command not found (e.g., '{cmd_list[0]}'). Ensure it's in your system's PATH or configured correctly."
        )
        return None
    except OSError as e:
        logger.error(f"Could not start '{cmd_list[0]}': {e}")
        return None

    if result.stdout and len(result.stdout) > 500:
        logger.trace(f"Command stdout (truncated): {result.stdout[:500]}...")
    elif result.stdout:
        logger.trace(f"Command stdout: {result.stdout}")

    # Distinguish between error output and informational output on stderr.
    if result.stderr and result.returncode != 0:
        logger.debug(f"Command stderr (error, rc={result.returncode}): {result.stderr}")
    elif result.stderr:
        logger.trace(f"Command stderr (non-error, rc={result.returncode}): {result.stderr}")

    return result
