"""
Pulse Module

Health metric sources and the 14-day digest built on top of them
"""

from .apple import AppleHealthStore
from .base import MetricSource, MetricSourceInfo
from .digest import DailyRecord, HealthDigestService

__all__ = [
    # Base classes and models
    "MetricSource",
    "MetricSourceInfo",
    # Concrete implementations
    "AppleHealthStore",
    # Digest
    "DailyRecord",
    "HealthDigestService",
]
