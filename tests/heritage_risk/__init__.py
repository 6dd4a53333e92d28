"""
Tests for the Heritage Risk Engine.

This package contains tests for:
- ABC scoring and uncertainty escalation
- Derived-state management and the profile cache
- Trend, comparative and threat evolution analysis
- Assessment statistics
- The SQLAlchemy repository
"""
