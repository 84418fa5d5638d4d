"""Data models for snapshot rotation."""
