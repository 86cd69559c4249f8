"""Rolling 14-day health digest."""

__version__ = "0.1.0"
