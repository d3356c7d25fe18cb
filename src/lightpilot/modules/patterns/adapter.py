"""
Pattern backend interface for the Pattern generator.

The backend turns a natural-language prompt into a device configuration
(typically by calling a hosted language model). The host provides a concrete
implementation; the generator only depends on this interface and falls back
to rule-based patterns whenever the backend fails or is too slow.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from lightpilot.core.lighting import LightConfiguration


class PatternBackend(ABC):
    """
    Abstract interface for prompt-driven pattern generation.

    Implementations may block on network I/O. The generator bounds every call
    with a timeout, so implementations don't need their own.
    """

    @abstractmethod
    def generate(self, prompt: str) -> LightConfiguration:
        """
        Generate a configuration for a prompt.

        Args:
            prompt: Description of the event and the user's preferences

        Returns:
            Generated configuration

        Raises:
            Exception: Any failure; the generator falls back on error
        """
        pass


class MockPatternBackend(PatternBackend):
    """
    Mock backend for testing.

    Returns a fixed configuration, or raises a fixed error, and records the
    prompts it was given.
    """

    def __init__(
        self,
        configuration: Optional[LightConfiguration] = None,
        error: Optional[Exception] = None,
        delay_seconds: float = 0.0,
    ) -> None:
        self._configuration = configuration or LightConfiguration.solid(((255, 0, 0),), 200)
        self._error = error
        self._delay = delay_seconds
        self._prompts: List[str] = []
        self._lock = threading.Lock()

    def set_configuration(self, configuration: LightConfiguration) -> None:
        """Set the configuration returned by generate()."""
        self._configuration = configuration

    def set_error(self, error: Optional[Exception]) -> None:
        """Make generate() raise (None to stop raising)."""
        self._error = error

    def get_prompts(self) -> List[str]:
        """Get recorded prompts."""
        with self._lock:
            return list(self._prompts)

    # PatternBackend implementation

    def generate(self, prompt: str) -> LightConfiguration:
        with self._lock:
            self._prompts.append(prompt)
        if self._delay:
            time.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._configuration
