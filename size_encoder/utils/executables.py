"""
This module locates the external executables (FFmpeg and ffprobe) a run needs.
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from ..config import common
from ..config.encoding import FFMPEG_EXECUTABLE, FFPROBE_EXECUTABLE


def resolve_executable(name: str, explicit: Optional[str] = None, module_path: Optional[Path] = None) -> str:
    """
    Determines the executable to run for an external tool.

    An explicit path from the command line wins. Otherwise the `ffmpeg_dir` from the
    user config is searched. As a last resort the bare tool name is returned, which
    relies on the executable being available in the system's PATH. Platform-specific
    executable names (e.g., '.exe' on Windows) are handled.

    Args:
        name: The tool name, e.g. "ffmpeg".
        explicit: A path supplied by the user, if any.
        module_path: The configured tool directory. Defaults to the user config value.

    Returns:
        A string containing the command or path to the executable.
    """
    if explicit:
        return explicit

    if module_path is None:
        module_path = common.MODULE_PATH

    exe_name = f"{name}.exe" if sys.platform == "win32" else name
    if module_path and module_path.is_dir():
        configured_path = module_path / exe_name
        if configured_path.is_file():
            logger.debug(f"Using {name} from configured path: '{configured_path}'")
            return str(configured_path)
        logger.warning(f"`ffmpeg_dir` is configured, but '{exe_name}' was not found there. Falling back to system PATH.")

    return name


def resolve_ffmpeg(explicit: Optional[str] = None) -> str:
    return resolve_executable(FFMPEG_EXECUTABLE, explicit)


def resolve_ffprobe(explicit: Optional[str] = None) -> str:
    return resolve_executable(FFPROBE_EXECUTABLE, explicit)
