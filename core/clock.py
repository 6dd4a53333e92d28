"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Provides a testable clock abstraction.

- Cache ages and recency windows are measured with it
- Enables deterministic testing
- UTC only

============================================================
DESIGN PRINCIPLES
============================================================
- Injected into the components that need "now"
- No process-wide clock instance
- Mockable for testing

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the engine clock."""
    
    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """
    Production clock using actual system time.
    
    All times are in UTC.
    """
    
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.
    
    Allows time manipulation for deterministic cache and
    recency-window tests.
    """
    
    def __init__(self, initial_time: Optional[datetime] = None):
        """
        Initialize mock clock.
        
        Args:
            initial_time: Starting time (defaults to current UTC)
        """
        initial_time = initial_time or datetime.now(timezone.utc)
        if initial_time.tzinfo is None:
            initial_time = initial_time.replace(tzinfo=timezone.utc)
        self._time = initial_time
        self._lock = threading.Lock()
    
    def now(self) -> datetime:
        with self._lock:
            return self._time
    
    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.
        
        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
]
