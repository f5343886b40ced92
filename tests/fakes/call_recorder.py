# =============================================================================
# File: tests/fakes/call_recorder.py
# Description: Call tracking and failure injection shared by the fakes
# Pattern: Ports & Adapters - Fake/Stub adapter
# =============================================================================

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class CallRecord:
    """Record of a method call for verification."""
    method: str
    args: tuple
    kwargs: Dict[str, Any]
    result: Any = None


class CallRecorder:
    """
    Base for fakes: records every call, can be told to fail (always or a
    fixed number of times) and to stall before answering.

    Usage:
        fake.configure_failure("upsert", "search down", times=2)
        ...
        assert fake.get_call_count("upsert") == 3
    """

    def __init__(self):
        self._calls: List[CallRecord] = []
        self._should_fail: Dict[str, str] = {}       # method -> error message
        self._fail_times: Dict[str, Optional[int]] = {}  # method -> remaining failures (None = always)
        self._delays: Dict[str, float] = {}           # method -> seconds

    # =========================================================================
    # Test Setup Methods
    # =========================================================================

    def configure_failure(self, method: str, error_message: str, times: Optional[int] = None) -> None:
        """Configure a method to fail, forever or for the next `times` calls."""
        self._should_fail[method] = error_message
        self._fail_times[method] = times

    def configure_delay(self, method: str, seconds: float) -> None:
        self._delays[method] = seconds

    def clear_failures(self) -> None:
        self._should_fail.clear()
        self._fail_times.clear()
        self._delays.clear()

    # =========================================================================
    # Test Verification Methods
    # =========================================================================

    def was_called(self, method: str) -> bool:
        """Check if a method was called."""
        return any(c.method == method for c in self._calls)

    def get_call_count(self, method: str) -> int:
        """Get number of times a method was called."""
        return sum(1 for c in self._calls if c.method == method)

    def get_calls(self, method: str) -> List[CallRecord]:
        """Get all calls to a specific method."""
        return [c for c in self._calls if c.method == method]

    def get_last_call(self, method: str) -> Optional[CallRecord]:
        """Get the last call to a specific method."""
        calls = self.get_calls(method)
        return calls[-1] if calls else None

    def get_all_calls(self) -> List[CallRecord]:
        """Get all recorded calls."""
        return self._calls.copy()

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _record_call(self, method: str, *args, **kwargs) -> None:
        self._calls.append(CallRecord(method=method, args=args, kwargs=kwargs))

    async def _before(self, method: str) -> None:
        """Apply configured delay, then raise if the method should fail."""
        delay = self._delays.get(method)
        if delay:
            await asyncio.sleep(delay)
        self._check_failure(method)

    def _check_failure(self, method: str) -> None:
        if method not in self._should_fail:
            return
        remaining = self._fail_times.get(method)
        message = self._should_fail[method]
        if remaining is not None:
            if remaining <= 1:
                del self._should_fail[method]
                del self._fail_times[method]
            else:
                self._fail_times[method] = remaining - 1
        raise Exception(message)
