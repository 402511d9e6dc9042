"""Multi-platform social media publishing core."""

__version__ = "0.1.0"
