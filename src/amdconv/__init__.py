"""amdconv: batch video converter for AMD GPUs built on ffmpeg."""

__version__ = "1.1.0"
