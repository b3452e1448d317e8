"""
Configuration Package for the Size Encoder.

This package centralizes all the static configuration settings for the application.
By separating configuration from the application logic, the numeric rules of the
size-targeting algorithm can be reviewed and adjusted in one place.

This package includes settings for:
- Common application settings like the logging format and the optional user
  configuration file (`config.user.yaml`) that locates FFmpeg and ffprobe.
- Encoding parameters: bitrate limits, audio allocation shares, convergence
  tolerance, attempt count and the FFmpeg options of both encode passes.
"""
