# backend/cryptofolio/services/circuit_breaker.py
"""
Circuit breaker guarding calls to the market data provider.

After `failure_threshold` consecutive (or windowed) failures the breaker
opens and rejects calls immediately with CircuitBreakerOpen, so a
CoinMarketCap outage does not tie up request threads on timeouts.

States:
    CLOSED    - Calls pass through
    OPEN      - Calls rejected until recovery_timeout has elapsed
    HALF_OPEN - Up to half_open_max_calls trial calls allowed

Usage:
    breaker = CircuitBreaker(name="coinmarketcap", failure_threshold=5)

    with breaker:
        response = client.get(url)
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """
    Raised when the breaker is open and the call was not attempted.

    Attributes:
        breaker_name: Name of the circuit breaker
        time_remaining: Seconds until a trial call will be allowed
    """

    def __init__(self, breaker_name: str, time_remaining: float) -> None:
        self.breaker_name = breaker_name
        self.time_remaining = time_remaining
        super().__init__(
            f"Circuit breaker '{breaker_name}' is open. "
            f"Retry in {time_remaining:.1f} seconds."
        )


@dataclass
class CircuitBreakerStats:
    """Counters exposed on the /health endpoint."""
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    state_changes: int = 0


@dataclass
class CircuitBreaker:
    """
    Thread-safe circuit breaker used as a context manager.

    Attributes:
        name: Identifier used in logs and errors
        failure_threshold: Failures needed to open the circuit
        recovery_timeout: Seconds to stay open before allowing trial calls
        half_open_max_calls: Trial calls allowed while half-open
        failure_window: Only failures within this many seconds count (0 = all)
        excluded_exceptions: Exceptions that do not count as failures
            (e.g. SymbolNotFoundError: the provider answered correctly)
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    half_open_max_calls: int = 3
    failure_window: float = 0.0
    excluded_exceptions: tuple[type[BaseException], ...] = field(default_factory=tuple)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failures: deque = field(default_factory=deque, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _half_open_calls: int = field(default=0, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)
    _stats: CircuitBreakerStats = field(default_factory=CircuitBreakerStats, init=False)

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout cannot be negative")
        if self.half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be at least 1")

    # =========================================================================
    # PUBLIC STATE
    # =========================================================================

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._maybe_half_open()
            return self._state

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    @property
    def stats(self) -> CircuitBreakerStats:
        """Snapshot copy of the counters."""
        with self._lock:
            return CircuitBreakerStats(**vars(self._stats))

    def reset(self) -> None:
        """Close the circuit and forget recorded failures."""
        with self._lock:
            self._transition(CircuitState.CLOSED)

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self) -> "CircuitBreaker":
        with self._lock:
            self._stats.total_calls += 1
            if not self._admit():
                self._stats.rejected_calls += 1
                raise CircuitBreakerOpen(self.name, self._time_until_half_open())
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> bool:
        with self._lock:
            if exc_val is None or isinstance(exc_val, self.excluded_exceptions):
                self._on_success()
            else:
                self._on_failure()
        return False

    # =========================================================================
    # INTERNALS (call with lock held)
    # =========================================================================

    def _admit(self) -> bool:
        self._maybe_half_open()
        if self._state == CircuitState.CLOSED:
            return True
        if self._state == CircuitState.HALF_OPEN and self._half_open_calls < self.half_open_max_calls:
            self._half_open_calls += 1
            return True
        return False

    def _maybe_half_open(self) -> None:
        if self._state == CircuitState.OPEN and self._time_until_half_open() <= 0:
            self._transition(CircuitState.HALF_OPEN)

    def _time_until_half_open(self) -> float:
        return max(0.0, self.recovery_timeout - (time.monotonic() - self._opened_at))

    def _on_success(self) -> None:
        self._stats.successful_calls += 1
        if self._state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.CLOSED)
        elif self.failure_window <= 0:
            self._failures.clear()

    def _on_failure(self) -> None:
        now = time.monotonic()
        self._stats.failed_calls += 1

        if self._state == CircuitState.HALF_OPEN:
            self._open(now)
            return

        self._failures.append(now)
        if self.failure_window > 0:
            while self._failures and self._failures[0] <= now - self.failure_window:
                self._failures.popleft()

        if len(self._failures) >= self.failure_threshold:
            self._open(now)

    def _open(self, now: float) -> None:
        self._opened_at = now
        self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._stats.state_changes += 1
        self._half_open_calls = 0
        if new_state == CircuitState.CLOSED:
            self._failures.clear()

        log = logger.warning if new_state == CircuitState.OPEN else logger.info
        log(f"CircuitBreaker '{self.name}': {old_state.value} -> {new_state.value}")
