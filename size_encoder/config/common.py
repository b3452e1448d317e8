"""
Common configuration settings used throughout the application.

This module contains globally shared configuration settings and constants that are
used across the entire Size Encoder application. It centralizes parameters for
logging and run reports. It also handles the loading of user-specific configuration
from an external YAML file, allowing the locations of FFmpeg and ffprobe to be
customized without modifying the source code.
"""
from pathlib import Path
import yaml
from loguru import logger

# --- User-Defined Path Configuration ---
# This block loads user-specific paths from a 'config.user.yaml' file located
# at the project root. Executables passed on the command line always win over
# this setting.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The directory containing the FFmpeg and ffprobe executables. This is loaded from
# 'config.user.yaml'. If not provided or None, the application assumes the
# executables are available in the system's PATH.
MODULE_PATH: Path | None = None


def load_user_config(config_path: Path = USER_CONFIG_PATH) -> Path | None:
    """
    Reads the `paths.ffmpeg_dir` entry from a user configuration file.

    Args:
        config_path: The YAML file to read.

    Returns:
        The configured tool directory, or None when the file or entry is absent
        or the file cannot be parsed.
    """
    if not config_path.is_file():
        logger.debug(f"User config '{config_path}' not found. Relying on system PATH for executables.")
        return None
    try:
        with config_path.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{config_path}': {e}")
        return None

    if not isinstance(user_config, dict):
        return None
    paths_config = user_config.get("paths") or {}
    ffmpeg_dir_str = paths_config.get("ffmpeg_dir")
    return Path(ffmpeg_dir_str) if ffmpeg_dir_str else None


MODULE_PATH = load_user_config()


# --- Logging Configuration ---

# The format string for the Loguru logger. It defines the structure and appearance
# of log messages, including timestamp, level, module name, and the message itself.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVEL_CHOICES = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]


# --- Run Report ---

# Width passed to yaml.dump so long paths stay on one line in the report.
REPORT_YAML_WIDTH = 220
