"""
Device adapter interface for the Scheduling module.

The adapter is the only way the autopilot touches the lighting installation.
The host provides a concrete implementation that speaks the device protocol;
the core treats apply() as an opaque, possibly-failing remote call.
"""

import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from lightpilot.core.lighting import LightConfiguration


class DeviceAdapter(ABC):
    """
    Abstract interface for the lighting installation.

    This interface is intentionally minimal:
    - apply: Push a configuration to the device
    - get_current_time: Local wall-clock time at the installation
    """

    @abstractmethod
    def apply(self, configuration: LightConfiguration) -> bool:
        """
        Apply a configuration to the device.

        May block on network I/O; the orchestrator bounds it with a timeout.

        Args:
            configuration: Configuration to apply

        Returns:
            True if the device accepted it, False otherwise
        """
        pass

    @abstractmethod
    def get_current_time(self) -> datetime:
        """
        Get current local time at the installation.

        Returns:
            Naive local datetime (schedule times are naive local times)
        """
        pass


class MockDeviceAdapter(DeviceAdapter):
    """
    Mock adapter for testing.

    Records applied configurations and lets tests control time, the apply
    result, failures and latency.
    """

    def __init__(self, current_time: Optional[datetime] = None) -> None:
        self._applied: List[LightConfiguration] = []
        self._current_time = current_time
        self._result = True
        self._error: Optional[Exception] = None
        self._delay = 0.0
        self._condition = threading.Condition()

    def set_current_time(self, dt: datetime) -> None:
        """Set current time for testing."""
        self._current_time = dt

    def set_result(self, result: bool) -> None:
        """Set what apply() returns."""
        self._result = result

    def set_error(self, error: Optional[Exception]) -> None:
        """Make apply() raise (None to stop raising)."""
        self._error = error

    def set_delay(self, seconds: float) -> None:
        """Make apply() block before returning."""
        self._delay = seconds

    def get_applied(self) -> List[LightConfiguration]:
        """Get every configuration passed to apply()."""
        with self._condition:
            return list(self._applied)

    def clear_applied(self) -> None:
        with self._condition:
            self._applied.clear()

    def wait_for_apply(self, count: int = 1, timeout: float = 2.0) -> bool:
        """Block until apply() has been called at least `count` times."""
        with self._condition:
            return self._condition.wait_for(lambda: len(self._applied) >= count, timeout)

    # DeviceAdapter implementation

    def apply(self, configuration: LightConfiguration) -> bool:
        if self._delay:
            time.sleep(self._delay)
        with self._condition:
            self._applied.append(configuration)
            self._condition.notify_all()
        if self._error is not None:
            raise self._error
        return self._result

    def get_current_time(self) -> datetime:
        if self._current_time:
            return self._current_time
        return datetime.now()
