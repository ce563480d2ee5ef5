"""Utility helpers."""
from .helpers import format_duration, from_epoch_ms, to_epoch_ms

__all__ = ['format_duration', 'from_epoch_ms', 'to_epoch_ms']
