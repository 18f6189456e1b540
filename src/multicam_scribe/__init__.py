"""Multi-camera sync and transcript fusion."""

__version__ = "0.1.0"
