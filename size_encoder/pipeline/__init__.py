"""
This package contains the encoding pipeline for the Size Encoder application.

A pipeline orchestrates the whole process for one input file: validating the
request, probing the media, allocating the bitrate budget and driving the size
convergence loop, and reporting the outcome.
"""
