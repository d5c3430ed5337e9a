"""
Fixed-interval pacing between requests.

This is not an adaptive limiter: every wait is a constant, chosen to stay
under the implicit limits of public RPC endpoints and the catalog service.
"""

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class PacingPolicy:
    """
    Waits consulted by the poller around every network call.

    All delays are in seconds. ``sleep`` can be replaced in tests.
    """

    catalog_delay: float = 0.5  # after each chain's catalog fetch
    chain_delay: float = 0.3  # before each chain's native-balance probe
    token_delay: float = 0.3  # before each token probe
    batch_pause: float = 5.0  # after every batch_size wallets
    batch_size: int = 3
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def _wait(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)

    def after_catalog_fetch(self) -> None:
        self._wait(self.catalog_delay)

    def before_native_probe(self) -> None:
        self._wait(self.chain_delay)

    def before_token_probe(self) -> None:
        self._wait(self.token_delay)

    def is_batch_boundary(self, wallets_completed: int) -> bool:
        """Whether the long pause is due after this many completed wallets."""
        return self.batch_size > 0 and wallets_completed > 0 and wallets_completed % self.batch_size == 0

    def after_batch(self) -> None:
        self._wait(self.batch_pause)


def no_pacing() -> PacingPolicy:
    """A policy with every wait disabled."""
    return PacingPolicy(catalog_delay=0, chain_delay=0, token_delay=0, batch_pause=0)
