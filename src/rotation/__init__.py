"""Snapshot rotation module.

This module selects which snapshots of a resource to retain and deletes the
rest, one resource at a time.

Classes:
    RotationDriver: Main orchestrator for rotation passes
    RotationReporter: Terminal and file reporting of rotation results
    Selection: Snapshots claimed by each retention bucket
"""

from __future__ import annotations

from .driver import RotationDriver
from .reporter import RotationReporter
from .selector import Selection

__all__ = [
    "RotationDriver",
    "RotationReporter",
    "Selection",
]
