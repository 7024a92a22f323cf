"""CascadeForge workflows module for background cascade runs."""

from cascadeforge.workflows.worker import CascadeWorker

__all__ = [
    "CascadeWorker",
]
