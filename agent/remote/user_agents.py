"""
User-Agent header providers.

A provider is any zero-argument callable returning the next header value.
Clients take a provider as a constructor argument; tests pass
fixed_user_agent(...) to keep requests deterministic.
"""

import random
from typing import Callable

HeaderValueProvider = Callable[[], str]

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Mobile Safari/537.36",
)


def random_user_agent() -> str:
    """Pick a browser User-Agent string at random."""
    return random.choice(USER_AGENTS)


def fixed_user_agent(value: str) -> HeaderValueProvider:
    """Provider that always returns the same value."""

    def provider() -> str:
        return value

    return provider
