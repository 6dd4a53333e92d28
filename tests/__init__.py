"""Test suite for the heritage risk engine."""
