"""
Circuit breaker guarding outbound provider calls.

One breaker exists per provider address. A breaker opens after
``failure_threshold`` consecutive transport failures and rejects calls until
``recovery_timeout`` seconds have passed, after which a single trial call is
let through (half-open). A successful trial closes the breaker again.
"""

import time
from enum import Enum
from typing import Dict, Any, Callable, Awaitable, Tuple, Type

from shared.logging import get_logger


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenException(Exception):
    """Exception raised when circuit breaker is open."""

    def __init__(self, name: str):
        super().__init__(f"Circuit breaker '{name}' is OPEN - blocking call")
        self.name = name


class CircuitBreaker:
    """Consecutive-failure circuit breaker for async calls."""

    def __init__(self,
                 name: str = "default",
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 expected_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exceptions = expected_exceptions
        self._clock = clock
        self.logger = get_logger(f"consumer.circuit_breaker.{name}")

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitBreakerState:
        if (self._state == CircuitBreakerState.OPEN
                and self._clock() - self._opened_at >= self.recovery_timeout):
            self._state = CircuitBreakerState.HALF_OPEN
            self.logger.info("Circuit breaker transitioning to half-open")
        return self._state

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Execute ``func`` unless the breaker is open."""
        state = self.state
        if state == CircuitBreakerState.OPEN:
            raise CircuitBreakerOpenException(self.name)

        # Half-open admits one trial; others are rejected until it settles
        trial = state == CircuitBreakerState.HALF_OPEN
        if trial:
            if self._trial_in_flight:
                raise CircuitBreakerOpenException(self.name)
            self._trial_in_flight = True

        try:
            result = await func(*args, **kwargs)
        except self.expected_exceptions:
            self._record_failure()
            raise
        finally:
            if trial:
                self._trial_in_flight = False

        self._record_success()
        return result

    def _record_success(self):
        if self._state != CircuitBreakerState.CLOSED:
            self.logger.info("Circuit breaker reset to CLOSED after successful call")
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0

    def _record_failure(self):
        self._failure_count += 1

        if (self._state == CircuitBreakerState.HALF_OPEN
                or self._failure_count >= self.failure_threshold):
            self._state = CircuitBreakerState.OPEN
            self._opened_at = self._clock()
            self.logger.warning(
                "Circuit breaker opened due to failures",
                failure_count=self._failure_count,
                threshold=self.failure_threshold
            )

    def reset(self):
        """Force the breaker back to CLOSED."""
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0
        self._trial_in_flight = False

    def is_open(self) -> bool:
        """Check if circuit breaker is in OPEN state."""
        return self.state == CircuitBreakerState.OPEN

    def get_state(self) -> Dict[str, Any]:
        """Get current circuit breaker state."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout
        }


class CircuitBreakerManager:
    """Registry of breakers keyed by name."""

    def __init__(self,
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 expected_exceptions: Tuple[Type[BaseException], ...] = (Exception,)):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exceptions = expected_exceptions
        self.circuit_breakers: Dict[str, CircuitBreaker] = {}
        self.logger = get_logger("consumer.circuit_breaker_manager")

    def get_circuit_breaker(self, name: str) -> CircuitBreaker:
        """Get or create the breaker for ``name``."""
        if name not in self.circuit_breakers:
            self.circuit_breakers[name] = CircuitBreaker(
                name=name,
                failure_threshold=self.failure_threshold,
                recovery_timeout=self.recovery_timeout,
                expected_exceptions=self.expected_exceptions
            )
            self.logger.info("Created circuit breaker", name=name)

        return self.circuit_breakers[name]

    def get_all_states(self) -> Dict[str, Dict[str, Any]]:
        """Get states of all circuit breakers."""
        return {
            name: cb.get_state()
            for name, cb in self.circuit_breakers.items()
        }
