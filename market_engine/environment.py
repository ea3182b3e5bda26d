from __future__ import annotations

"""Chain environment: the chain id and clock the engine validates against."""

from dataclasses import dataclass, field
from typing import Protocol

from .utils import utc_seconds


class ChainEnvironment(Protocol):
    def chain_id(self) -> int: ...

    def timestamp(self) -> int: ...


@dataclass
class LocalChain:
    """In-process chain environment.

    The chain id is mutable so a fork (chain id change) can be simulated, and
    the clock can be pinned with ``now`` or left to follow wall time.
    """

    id: int = 31337
    now: int = field(default_factory=utc_seconds)
    follow_wall_clock: bool = False

    def chain_id(self) -> int:
        return self.id

    def timestamp(self) -> int:
        if self.follow_wall_clock:
            return utc_seconds()
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now
