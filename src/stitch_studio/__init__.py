"""stitch-studio: generate AI video clips, auto-stitch them and finalize to a library."""

__version__ = "0.1.0"
