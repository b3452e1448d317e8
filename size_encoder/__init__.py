"""
Size Encoder: re-encodes a video with FFmpeg so the output lands close to a target size.

The package is organised in layers:
    config: constants of the size-targeting algorithm and the user configuration.
    domain: media metadata, bitrate budgets, attempt results and exceptions.
    services: bitrate allocation, the size convergence loop and the FFmpeg encoder.
    pipeline: the orchestration of a single run.
    utils: running external commands, locating executables and formatting values.
"""

__version__ = "1.0.0"
