"""API package initialization."""
from .server import app, set_control, start

__all__ = ['app', 'set_control', 'start']
