from __future__ import annotations

"""All-or-nothing unit of work over in-process state.

Every participant is snapshotted on entry; if the block raises, all of them
are restored and the exception propagates. There are no compensating actions.
"""

from typing import Any, List, Optional, Protocol, Sequence

from loguru import logger


class Participant(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class Transaction:
    """Context manager; nested use gives each level its own rollback point."""

    def __init__(self, participants: Sequence[Participant]) -> None:
        self.participants = list(participants)
        self._saved: Optional[List[Any]] = None

    def __enter__(self) -> "Transaction":
        self._saved = [p.snapshot() for p in self.participants]
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        saved, self._saved = self._saved, None
        if exc_type is not None and saved is not None:
            for participant, state in zip(self.participants, saved):
                participant.restore(state)
            logger.debug("rolled back {} participant(s) after {}", len(self.participants), exc_type.__name__)
        return False
