import itertools
import logging
import time
from typing import Callable, Optional

from npat.models import GameSession


class CountdownTimer:
    """Per-room round countdown.

    Each start hands the session a fresh handle (a generation number). A tick
    only counts while the session still holds the handle it was started with,
    so stopping or restarting a countdown takes effect even for a tick that is
    already sleeping.

    - Ticks every ``tick_seconds`` and emits ``timerValue`` with the new value
    - At ``limit`` resets to 0, emits 0 and stops
    - ``spawn`` runs the tick loop in the background; without it no loop is
      started and ticks are driven by calling ``tick`` directly
    """

    def __init__(self, registry, broadcast: Callable, logger=None, tick_seconds: float = 1,
                 limit: int = 61, spawn: Optional[Callable] = None, sleep: Optional[Callable] = None):
        self.registry = registry
        self.broadcast = broadcast
        self.logger = logger or logging.getLogger(__name__)
        self.tick_seconds = tick_seconds
        self.limit = limit
        self._spawn = spawn
        self._sleep = sleep or time.sleep
        self._handles = itertools.count(1)

    def start(self, code) -> int:
        session = self.registry.get(code)
        with session.lock:
            return self.start_session(session)

    def start_session(self, session: GameSession) -> int:
        """Start (or supersede) the countdown for a session whose lock is held."""
        handle = next(self._handles)
        session.timer_handle = handle
        session.current_timer_value = 0
        self.logger.info(f"[timer-start] code={session.code} handle={handle} round={session.current_round}")
        if self._spawn is not None:
            self._spawn(self._run, session.code, handle)
        return handle

    def _run(self, code, handle) -> None:
        while True:
            self._sleep(self.tick_seconds)
            if not self.tick(code, handle):
                return

    def tick(self, code, handle) -> bool:
        """Advance the countdown by one step. Returns False once this handle is finished."""
        session = self.registry.find(code)
        if session is None:
            return False
        with session.lock:
            if session.closed or session.timer_handle != handle:
                return False
            session.current_timer_value += 1
            if session.current_timer_value >= self.limit:
                session.current_timer_value = 0
                session.timer_handle = None
                self.broadcast(code, 'timerValue', {'timer': 0})
                self.logger.info(f"[timer-expired] code={code} handle={handle}")
                return False
            self.broadcast(code, 'timerValue', {'timer': session.current_timer_value})
            return True

    def stop(self, code) -> bool:
        """Cut the round short: show the last second, then reset to 0 for the next round."""
        session = self.registry.find(code)
        if session is None:
            return False
        with session.lock:
            if session.timer_handle is None:
                return False
            handle = session.timer_handle
            session.timer_handle = None
            session.current_timer_value = self.limit - 1
            self.broadcast(code, 'timerValue', {'timer': session.current_timer_value})
            session.current_timer_value = 0
            self.broadcast(code, 'timerValue', {'timer': 0})
        self.logger.info(f"[timer-stop] code={code} handle={handle}")
        return True

    def cancel(self, session: GameSession) -> None:
        """Silently drop the countdown of a session whose lock is held."""
        if session.timer_handle is not None:
            self.logger.info(f"[timer-cancel] code={session.code} handle={session.timer_handle}")
        session.timer_handle = None
        session.current_timer_value = 0
