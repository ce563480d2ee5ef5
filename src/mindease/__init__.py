"""MindEase: app blocking and screen time reporting."""

__version__ = "1.0.0"
