"""
Main entry point for the Size Encoder application.

Usage:
    python main.py <input> <target_size_mb> [output] [ffmpeg] [ffprobe]

The process exits with 0 when an output file was produced and 1 on any fatal error.
"""

import sys

from size_encoder.cli import main


if __name__ == "__main__":
    sys.exit(main())
