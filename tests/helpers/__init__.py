"""Test helper utilities for notification engine tests."""

from .transports import FixedClock, HangingTransport, StubTransport

__all__ = ["StubTransport", "HangingTransport", "FixedClock"]
