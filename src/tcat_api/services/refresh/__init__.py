"""Periodic refresh of every snapshot bin."""

from tcat_api.services.refresh.coordinator import Source, UpdateCoordinator

__all__ = [
    "Source",
    "UpdateCoordinator",
]
