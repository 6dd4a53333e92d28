"""
Core Module Package.

Infrastructure shared by the heritage risk engine.

Components:
- clock: Injectable time abstraction
"""

from .clock import ClockProtocol, MockClock, SystemClock

__all__ = [
    "ClockProtocol",
    "MockClock",
    "SystemClock",
]
