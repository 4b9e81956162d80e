"""Synchronization of local widget content with the widget service."""

from .coordinator import UploadCoordinator

__all__ = ["UploadCoordinator"]
