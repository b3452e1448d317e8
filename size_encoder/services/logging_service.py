"""
This module provides the structured run report written with `--report`.

The real-time console output goes through loguru. The run report is separate: a
machine-readable YAML file holding one entry per run, with the chosen bitrates and
the measured result of every attempt. Entries accumulate, so one report file can
collect the history of many runs.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from loguru import logger

from ..config.common import REPORT_YAML_WIDTH
from ..domain.media import MediaMetadata
from ..domain.models import AttemptResult, BitrateBudget, ConvergenceState
from ..utils.format_utils import format_timedelta, formatted_size


class RunReportLog:
    """
    Appends run entries to a YAML list file.

    To keep the file a valid YAML list, every write reads the existing entries,
    appends the new one with the next index, and writes the whole list back.
    """

    def __init__(self, report_path: Path):
        self.log_file_path: Path = report_path.resolve()
        self.log_entries: List[Dict] = []

    def _load_entries(self) -> List[Dict]:
        if not self.log_file_path.is_file():
            return []
        try:
            with self.log_file_path.open("r", encoding="utf-8") as f:
                loaded_entries = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error reading/parsing run report {self.log_file_path}: {e}. Starting a new report.")
            return []
        if isinstance(loaded_entries, list):
            return loaded_entries
        if loaded_entries is not None:
            logger.warning(f"Run report {self.log_file_path} contained unexpected data. Starting a new report.")
        return []

    def write(self, new_log_entry: dict):
        """
        Writes a new structured entry to the report file.

        Failures are logged and never raised; a missing report must not fail a run
        whose output was produced.
        """
        self.log_entries = self._load_entries()

        current_max_index = max(
            (entry.get("index", 0) for entry in self.log_entries if isinstance(entry, dict)),
            default=0,
        )
        new_log_entry = {"index": current_max_index + 1, **new_log_entry}
        self.log_entries.append(new_log_entry)

        try:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(
                    self.log_entries,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                    indent=4,
                    width=REPORT_YAML_WIDTH,
                )
            logger.debug(f"Run report written to {self.log_file_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to write run report {self.log_file_path}: {e}")


def build_report_entry(
    input_path: Path,
    output_path: Path,
    target_size_mb: float,
    target_bytes: int,
    metadata: MediaMetadata,
    budget: BitrateBudget,
    attempts: List[AttemptResult],
    state: ConvergenceState,
    started_datetime: datetime,
    ended_datetime: Optional[datetime] = None,
    error_message: Optional[str] = None,
) -> dict:
    """Collects everything worth keeping about one run into a plain dictionary."""
    ended_datetime = ended_datetime or datetime.now()
    entry = {
        "input_file": str(input_path),
        "output_file": str(output_path),
        "target_size_mb": target_size_mb,
        "target_bytes": target_bytes,
        "duration_seconds": metadata.duration_seconds,
        "original_audio_kbps": metadata.original_audio_kbps,
        "total_kbps": round(budget.total_kbps, 2),
        "audio_kbps": budget.audio_kbps,
        "initial_video_kbps": budget.video_kbps,
        "attempts": [
            {
                "attempt": attempt.attempt_number,
                "video_kbps": attempt.requested_video_kbps,
                "output_bytes": attempt.actual_output_bytes,
                "output_size": formatted_size(attempt.actual_output_bytes),
                "diff_ratio": round(attempt.diff_ratio, 4),
            }
            for attempt in attempts
        ],
        "state": state.value,
        "started_datetime": started_datetime.isoformat(timespec="seconds"),
        "ended_datetime": ended_datetime.isoformat(timespec="seconds"),
        "total_time": format_timedelta(ended_datetime - started_datetime),
    }
    if error_message:
        entry["error"] = error_message
    return entry
