"""Cadence: habit period bucketing and progress rollups."""

__version__ = "0.1.0"
