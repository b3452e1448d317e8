"""
Utilities Package for the Size Encoder Application.

Modules:
    - ffmpeg_utils.py: Runs external commands while draining their output.
    - executables.py: Locates the FFmpeg and ffprobe executables.
    - format_utils.py: Formats durations, file sizes and ratios for logs and reports.
"""
