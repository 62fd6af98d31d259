"""Planning, media probing and job tracking for media processing pipelines."""

__version__ = "0.1.0"