"""
This package contains the core domain models of the Size Encoder application.

The domain layer represents the fundamental concepts of size-targeted encoding:
what is known about the input, how the bitrate is split, and what each encode
attempt produced. It is independent of the command line and of how FFmpeg is
invoked, so the allocation and convergence logic can be tested on its own.

Modules:
    exceptions.py: Defines custom exception types for input, probe and encode
                   failures, allowing for granular error handling.
    media.py: Contains `MediaMetadata` and the functions that obtain it from
              ffprobe's JSON output.
    models.py: Defines `BitrateBudget`, `AttemptResult` and the states of the
               size convergence loop.
"""
