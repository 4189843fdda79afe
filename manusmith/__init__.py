"""ManuSmith: manuscript conversion and typography normalization."""

__version__ = "1.0.0"
