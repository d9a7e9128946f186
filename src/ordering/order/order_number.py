"""Order number generation.

Order numbers are human-readable identifiers of the form
``ORD-<epoch millis>-<3 digit suffix>``. Generation needs no coordinating
sequence service: uniqueness is enforced by the repository (see
``OrderRepository.is_order_number_taken``) and the creation handler
regenerates once on a collision.
"""

import random
import time
from collections.abc import Callable

DEFAULT_PREFIX = "ORD"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class OrderNumberGenerator:
    """Builds order numbers from a clock and a random source.

    Both sources are injectable so tests can pin the output. Two numbers
    generated in the same millisecond collide with probability 1/1000.
    """

    def __init__(
        self,
        prefix: str = DEFAULT_PREFIX,
        clock: Callable[[], int] | None = None,
        rng: random.Random | None = None,
    ):
        self.prefix = prefix
        self._clock = clock or _epoch_millis
        self._rng = rng or random.SystemRandom()

    def generate(self) -> str:
        suffix = self._rng.randrange(1000)
        return f"{self.prefix}-{self._clock()}-{suffix:03d}"


default_generator = OrderNumberGenerator()
