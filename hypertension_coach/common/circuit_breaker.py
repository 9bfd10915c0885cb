# hypertension_coach/common/circuit_breaker.py
"""
Circuit breaker for calls to the completion gateway.

When the gateway keeps failing, callers stop waiting on it and go straight to
their local fallback (templated trend line, offline diet plan) until the
cool-down elapses and a trial request succeeds.
"""
import time
import threading
from enum import Enum
from typing import Callable, Any, Dict, Optional
from hypertension_coach.common.logger import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(Exception):
    """Raised when a call is rejected because the circuit is OPEN"""
    pass


class CircuitBreaker:
    """
    Args:
        failure_threshold: consecutive failures before the circuit opens
        success_threshold: trial successes needed in HALF_OPEN to close again
        cooldown: seconds an OPEN circuit rejects calls before allowing a trial
        name: label used in logs and /health
    """
    def __init__(
        self,
        failure_threshold: int = 5,
        success_threshold: int = 1,
        cooldown: float = 30,
        name: str = "unnamed",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.cooldown = cooldown
        self.name = name
        self._clock = clock

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.opened_at: Optional[float] = None
        self.lock = threading.RLock()

    def _seconds_until_trial(self) -> float:
        if self.opened_at is None:
            return 0.0
        return max(0.0, self.cooldown - (self._clock() - self.opened_at))

    def allow_request(self) -> bool:
        with self.lock:
            if self.state != CircuitState.OPEN:
                return True
            if self._seconds_until_trial() > 0:
                return False
            logger.info(f"Circuit '{self.name}' cooled down, allowing a trial request")
            self.state = CircuitState.HALF_OPEN
            self.success_count = 0
            return True

    def call(self, func: Callable, *args, **kwargs) -> Any:
        if not self.allow_request():
            wait = int(self._seconds_until_trial())
            logger.warning(f"Circuit '{self.name}' is OPEN, rejecting call (retry in {wait}s)")
            raise CircuitBreakerError(f"Circuit '{self.name}' is open; retry in {wait}s")

        try:
            result = func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def record_success(self):
        with self.lock:
            self.failure_count = 0
            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.success_threshold:
                    logger.info(f"Circuit '{self.name}' closed, gateway recovered")
                    self.state = CircuitState.CLOSED
                    self.opened_at = None
                    self.success_count = 0

    def record_failure(self):
        with self.lock:
            self.failure_count += 1
            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                if self.state != CircuitState.OPEN:
                    logger.error(
                        f"Circuit '{self.name}' opening after {self.failure_count} failure(s)"
                    )
                self.state = CircuitState.OPEN
                self.opened_at = self._clock()
                self.success_count = 0

    def reset(self):
        with self.lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.success_count = 0
            self.opened_at = None

    def get_status(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "name": self.name,
                "state": self.state.value,
                "failure_count": self.failure_count,
                "retry_in_seconds": int(self._seconds_until_trial()) if self.state == CircuitState.OPEN else 0,
            }


class CircuitBreakers:
    """Process-wide registry so every request shares one view of gateway health"""
    _lock = threading.Lock()
    _breakers: Dict[str, CircuitBreaker] = {}

    @classmethod
    def get_breaker(cls, name: str, **kwargs) -> CircuitBreaker:
        with cls._lock:
            if name not in cls._breakers:
                cls._breakers[name] = CircuitBreaker(name=name, **kwargs)
            return cls._breakers[name]

    @classmethod
    def reset_all(cls):
        with cls._lock:
            for breaker in cls._breakers.values():
                breaker.reset()

    @classmethod
    def statuses(cls) -> Dict[str, Dict[str, Any]]:
        with cls._lock:
            return {name: b.get_status() for name, b in cls._breakers.items()}


def get_gateway_breaker() -> CircuitBreaker:
    """Breaker for one-shot completions (trend summaries)"""
    return CircuitBreakers.get_breaker(
        "completion_gateway",
        failure_threshold=3,
        success_threshold=1,
        cooldown=30,
    )


def get_coach_stream_breaker() -> CircuitBreaker:
    """Breaker for the streamed coach/diet proxy"""
    return CircuitBreakers.get_breaker(
        "coach_stream",
        failure_threshold=5,
        success_threshold=1,
        cooldown=30,
    )
