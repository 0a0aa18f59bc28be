"""
Synthetic Data Module
"""
from .generators import SnapshotGenerator, save_snapshot

__all__ = [
    "SnapshotGenerator",
    "save_snapshot",
]
