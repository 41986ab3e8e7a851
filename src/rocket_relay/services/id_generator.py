"""Message ID generation. Rocket.Chat expects clients to supply message IDs."""

import random
import time
from typing import Protocol

_DIGITS = "0123456789abcdefghijklmnopqrstuv"


class IDGenerator(Protocol):
    def seed(self, value: int) -> None: ...

    def id(self) -> str: ...


def _base32(value: int) -> str:
    if value == 0:
        return "0"
    out: list[str] = []
    while value:
        value, rem = divmod(value, 32)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))


class RandomIDGenerator:
    """Random 64-bit IDs rendered in base 32.

    Unique with high probability for the lifetime of the process. Each
    instance owns its own ``random.Random`` so seeding one never affects
    another or the module-level generator.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rand = random.Random()
        self.seed(time.time_ns() if seed is None else seed)

    def seed(self, value: int) -> None:
        self._rand.seed(value)

    def id(self) -> str:
        return _base32(self._rand.getrandbits(64))
