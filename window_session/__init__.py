"""Save the desktop's windows and bring them back later."""

__version__ = "1.0.0"
