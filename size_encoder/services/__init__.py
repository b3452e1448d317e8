"""
Services Package for the Size Encoder Application.

This package contains the "service layer" of the application: the classes and
functions that perform the actual work of a run and sit between the pipeline and
the domain models.

- **Bitrate Allocation (`bitrate_allocator`):**
  Pure functions that turn a target size and duration into a video/audio split.

- **Size Convergence (`convergence`):**
  `SizeConvergenceLoop` drives repeated encode attempts, correcting the video
  bitrate from the measured output size.

- **Encoding (`encode_invoker`):**
  `EncodeInvoker` is the narrow interface to the encoder; `FFmpegTwoPassEncoder`
  implements it with a two-pass FFmpeg encode.

- **Run Report (`logging_service`):**
  `RunReportLog` writes the optional structured YAML report of a run.
"""
