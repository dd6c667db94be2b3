from __future__ import annotations
import logging
from .events import BaseEvent


class LoggerObserver:
    """Echoes events at debug level; the engine already logs failures."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts", "run_id"))
        self.logger.debug(f"[EVENT] {etype}: {msg}")
