"""Background one-second tick loop for a game session."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from ..models import GameStatus
from ..utils.constants import TICK_INTERVAL_SECONDS
from .game_clock import TickResult
from .game_session import GameSession

logger = logging.getLogger(__name__)


class ClockTicker:
    """
    Drives ``session.tick()`` once per interval on a daemon thread.

    Checkpoint writes are handed to a single-worker executor so a slow store
    never delays the next tick. The loop stops by itself once the game is
    completed.
    """

    def __init__(
        self,
        session: GameSession,
        interval: float = TICK_INTERVAL_SECONDS,
        listener: Optional[Callable[[TickResult], None]] = None,
    ):
        self.session = session
        self.interval = interval
        self.listener = listener
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def start(self) -> None:
        """Start the tick loop thread."""
        if self.running:
            return
        if self.session.checkpoint_executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="checkpoint")
            self.session.checkpoint_executor = self._executor
        self.stop_event.clear()
        self.thread = threading.Thread(
            target=self._run, name=f"clock-{self.session.game_id}", daemon=True
        )
        self.thread.start()
        logger.info("Clock ticker started for game %s", self.session.game_id)

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the tick loop and flush pending checkpoints."""
        self.stop_event.set()
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            if self.session.checkpoint_executor is self._executor:
                self.session.checkpoint_executor = None
            self._executor = None
        logger.info("Clock ticker stopped for game %s", self.session.game_id)

    def _run(self) -> None:
        while not self.stop_event.is_set():
            try:
                result = self.session.tick()
                if self.listener is not None and (result.events or result.state.running):
                    self.listener(result)
            except Exception:
                logger.exception("Tick failed for game %s", self.session.game_id)

            if self.session.clock.status == GameStatus.COMPLETED:
                logger.info("Game %s completed; tick loop exiting", self.session.game_id)
                break
            self.stop_event.wait(self.interval)
