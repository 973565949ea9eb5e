"""Capped exponential backoff for reconnects and failed polls."""

BASE_DELAY_MS = 1000
DEFAULT_MAX_DELAY_MS = 15000


class Backoff:
    """Retry delay policy: ``min(2**attempt * 1000ms, ceiling)``.

    The attempt counter grows with every scheduled retry and only goes back
    to zero on a confirmed success, so retries continue forever with a
    capped delay.

    Example:
        backoff = Backoff(max_delay_ms=15000)
        backoff.next_delay_ms()  # 1000
        backoff.next_delay_ms()  # 2000
        backoff.reset()
    """

    def __init__(self, max_delay_ms: int = DEFAULT_MAX_DELAY_MS) -> None:
        """Initialize the policy.

        Args:
            max_delay_ms: Ceiling for any single delay in milliseconds.
        """
        self._max_delay_ms = max(0, max_delay_ms)
        self._attempt = 0

    @property
    def attempt(self) -> int:
        """Return the number of retries scheduled since the last success."""
        return self._attempt

    @property
    def max_delay_ms(self) -> int:
        """Return the delay ceiling in milliseconds."""
        return self._max_delay_ms

    def delay_ms(self, attempt: int) -> int:
        """Return the delay for a given attempt number."""
        # Cap the exponent so huge attempt counts stay cheap
        if attempt >= self._max_delay_ms.bit_length():
            return self._max_delay_ms
        return min((2**attempt) * BASE_DELAY_MS, self._max_delay_ms)

    def next_delay_ms(self) -> int:
        """Return the delay for the current attempt and count it."""
        delay = self.delay_ms(self._attempt)
        self._attempt += 1
        return delay

    def reset(self) -> None:
        """Start over after a successful (re)connection."""
        self._attempt = 0
