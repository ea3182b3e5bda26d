from __future__ import annotations

"""発行レコードの配信（購読者コールバック + ログ）。"""

from dataclasses import asdict
from typing import Any, Callable, List

from loguru import logger


EventHandler = Callable[[Any], None]


class EventBus:
    """コミット済みのレコードを購読者へ配信する。"""

    def __init__(self) -> None:
        self._handlers: List[EventHandler] = []
        self.history: List[Any] = []

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def emit(self, record: Any) -> None:
        self.history.append(record)
        logger.info("{}: {}", getattr(record, "name", type(record).__name__), asdict(record))
        for handler in self._handlers:
            handler(record)
