"""
circuit_breaker.py - Circuit breaker for external linked-data endpoints
"""
from typing import Awaitable, Callable, Type
from datetime import datetime, timedelta
from enum import Enum
from logger import get_logger
from metrics import circuit_breaker_state

logger = get_logger(__name__)

class CircuitState(Enum):
    CLOSED = 0
    OPEN = 1
    HALF_OPEN = 2

class CircuitBreakerError(Exception):
    """Raised when circuit is open"""
    pass

class CircuitBreaker:
    """
    Stops calling an endpoint after ``failure_threshold`` consecutive failures
    and lets a single trial call through once ``recovery_timeout`` seconds
    have passed. Concurrent callers are rejected while the trial runs.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: Type[Exception] = Exception
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.failure_count = 0
        self.last_failure_time = None
        self.state = CircuitState.CLOSED
        self._trial_running = False

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN and not self._should_attempt_reset()

    async def call(self, func: Callable[..., Awaitable], *args, **kwargs):
        """Execute coroutine function with circuit breaker"""
        if self.state == CircuitState.OPEN:
            if self._should_attempt_reset():
                self._set_state(CircuitState.HALF_OPEN)
            else:
                raise CircuitBreakerError(f"Circuit breaker is OPEN for {self.name}")

        trial = self.state == CircuitState.HALF_OPEN
        if trial:
            if self._trial_running:
                raise CircuitBreakerError(f"Circuit breaker for {self.name} is waiting for its trial call")
            self._trial_running = True

        try:
            result = await func(*args, **kwargs)
        except self.expected_exception:
            self._on_failure()
            raise
        finally:
            if trial:
                self._trial_running = False
        self._on_success()
        return result

    def _should_attempt_reset(self) -> bool:
        if self.last_failure_time is None:
            return False
        return datetime.now() - self.last_failure_time >= timedelta(seconds=self.recovery_timeout)

    def _set_state(self, state: CircuitState):
        self.state = state
        circuit_breaker_state.labels(self.name).set(state.value)

    def _on_success(self):
        self.failure_count = 0
        if self.state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.CLOSED)
            logger.info(f"Circuit breaker for {self.name} closed after successful recovery")

    def _on_failure(self):
        self.failure_count += 1
        self.last_failure_time = datetime.now()

        if self.state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.OPEN)
            logger.warning(f"Circuit breaker for {self.name} reopened after failure in half-open state")
        elif self.failure_count >= self.failure_threshold and self.state != CircuitState.OPEN:
            self._set_state(CircuitState.OPEN)
            logger.warning(f"Circuit breaker for {self.name} opened after {self.failure_count} failures")
