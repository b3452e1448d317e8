"""
Configuration settings related to size-targeted encoding.

This module defines the numeric constants of the bitrate allocation and size
convergence algorithms, the FFmpeg settings used for both encode passes, and the
naming rules for output and temporary files.
"""

# --- Bitrate Budget ---
# Kilobits per second needed to spend one megabyte (1024 * 1024 bytes) in one second:
# 1 MB * 8 bits / 1024 = 8192 kbit.
KBPS_PER_MB_SECOND = 8192.0
BYTES_PER_MB = 1024 * 1024

# Reserved for container/muxing overhead and never given to either stream.
CONTAINER_OVERHEAD_KBPS = 16

# Below this the output is considered unwatchable and the run aborts.
MIN_VIDEO_BITRATE_KBPS = 100

# --- Audio Allocation ---
DEFAULT_AUDIO_BITRATE_KBPS = 128
MIN_AUDIO_BITRATE_KBPS = 64
MAX_AUDIO_BITRATE_KBPS = 192
# If the clamped audio bitrate is larger than this share of the total budget,
# it is replaced with FALLBACK_AUDIO_SHARE of the total.
MAX_AUDIO_SHARE = 0.25
FALLBACK_AUDIO_SHARE = 0.20
FALLBACK_AUDIO_FLOOR_KBPS = 48

# The lowest audio bitrate reported by the probe when a stream has a bit_rate field.
PROBED_AUDIO_FLOOR_KBPS = 32

# --- Size Convergence ---
MAX_ENCODE_ATTEMPTS = 2
SIZE_TOLERANCE_RATIO = 0.03

# --- Encoder Settings ---
VIDEO_ENCODER = "libx264"
VIDEO_PRESET = "slow"
AUDIO_ENCODER = "aac"
ANALYSIS_PASS_FORMAT = "mp4"
OUTPUT_MOVFLAGS = "+faststart"

# --- Output and Temporary Files ---
OUTPUT_EXTENSION = ".mp4"
OUTPUT_SUFFIX = "_compressed"
PASSLOG_PREFIX = "size-encoder-passlog-"

FFMPEG_EXECUTABLE = "ffmpeg"
FFPROBE_EXECUTABLE = "ffprobe"
# Entries requested from ffprobe: container duration plus per-stream type and bit rate.
PROBE_SHOW_ENTRIES = "format=duration:stream=codec_type,bit_rate"
