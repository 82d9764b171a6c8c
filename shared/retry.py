"""
Backoff policy for resilient remote operations.
"""

import random


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = True):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay before retry attempt number ``attempt`` (1-based)."""
    delay = config.base_delay * (config.exponential_base ** (attempt - 1))

    # Apply max delay cap
    delay = min(delay, config.max_delay)

    # Add jitter if enabled
    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        jitter = random.uniform(-jitter_amount, jitter_amount)
        delay += jitter

    return max(0.0, delay)


class Backoff:
    """Tracks consecutive failures and hands out the matching delay."""

    def __init__(self, config: RetryConfig):
        self.config = config
        self.attempts = 0

    def next_delay(self) -> float:
        self.attempts += 1
        return calculate_delay(self.attempts, self.config)

    def reset(self):
        self.attempts = 0
