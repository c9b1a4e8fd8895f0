"""Mixmaster - build-trigger ingestion gateway."""

__version__ = "1.0.0"
