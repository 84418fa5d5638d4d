"""Snapshot Rotator - retention-policy driven snapshot rotation for EBS volumes."""

__version__ = "0.1.0"
