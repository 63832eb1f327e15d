"""Display session lifecycle: open, play for a bounded duration, preempt, close."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

from .models import ROTATIONS, DeviceError, Frame, MatrixConfig, SessionState
from .transport import Transport


_logger = logging.getLogger("cactuspi.display")

EventSink = Callable[..., None]


class DisplaySession:
    """One hand-off of a frame to the device.

    The session lock serialises blit and close, so a preempt coming from the
    listener thread never tears the device down in the middle of a blit. The
    stop event is what unblocks ``play``; the closed event is what ``preempt``
    waits on before the next session may open.
    """

    def __init__(
        self,
        session_id: int,
        transport: Transport,
        config: MatrixConfig,
        on_event: EventSink | None = None,
    ) -> None:
        self.session_id = session_id
        self.transport = transport
        self.config = config
        self._state = SessionState.IDLE
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._closed = threading.Event()
        self._on_event = on_event

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state in (SessionState.OPENING, SessionState.PLAYING)

    def _emit(self, event: str, **fields: Any) -> None:
        if self._on_event is not None:
            self._on_event(event, self, **fields)

    def open(self) -> None:
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise DeviceError(f"session {self.session_id} cannot open from {self._state.value}")
            self._state = SessionState.OPENING
            self._emit("session_open", rotation=self.config.rotation)
            try:
                self.transport.open(self.config)
            except DeviceError:
                self._close_locked()
                raise

    def play(self, frame: Frame, duration: float) -> bool:
        """Blit ``frame`` and hold it for ``duration`` seconds.

        Returns True when the full duration elapsed and False when the session
        was preempted, either while playing or before playback started. The
        session is always closed on return.
        """
        try:
            with self._lock:
                if self._state is not SessionState.OPENING:
                    return False
                self._state = SessionState.PLAYING
                self._emit("session_play", duration_s=duration)
                self.transport.blit(frame.rotated(self.config.rotation))
            return not self._stop.wait(max(0.0, duration))
        finally:
            self.close()

    def preempt(self, timeout: float | None = None) -> bool:
        """Stop playback and wait until the device is released."""
        self._stop.set()
        with self._lock:
            if self._state is SessionState.CLOSED:
                return True
            self._emit("session_preempt")
            if self._state is not SessionState.PLAYING:
                # Nobody is blocked in play(), so release the device here.
                self._close_locked()
        return self._closed.wait(timeout)

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def _close_locked(self) -> None:
        if self._state is SessionState.CLOSED:
            return
        was_open = self._state is not SessionState.IDLE
        self._state = SessionState.CLOSED
        try:
            if was_open:
                self.transport.close()
        finally:
            self._closed.set()
            if was_open:
                self._emit("session_close")


class DisplaySessionManager:
    """Owns the panel: at most one session is Opening or Playing at any time."""

    def __init__(
        self,
        transport_factory: Callable[[], Transport],
        config: MatrixConfig | None = None,
        max_events: int = 1000,
    ) -> None:
        self.config = config or MatrixConfig()
        self._transport_factory = transport_factory
        self._active: DisplaySession | None = None
        self._ids = itertools.count(1)
        self._events: list[dict[str, Any]] = []
        self._events_lock = threading.Lock()
        self._max_events = max_events

    @property
    def active(self) -> DisplaySession | None:
        session = self._active
        if session is not None and session.active:
            return session
        return None

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        with self._events_lock:
            return list(self._events[-limit:])

    def _log_event(self, event: str, session: DisplaySession, **fields: Any) -> None:
        row = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "session_id": session.session_id,
            "state": session.state.value,
        }
        row.update(fields)
        with self._events_lock:
            self._events.append(row)
            if len(self._events) > self._max_events:
                self._events = self._events[-self._max_events :]
        _logger.debug("%s session=%s", event, session.session_id, extra={"event": event})

    def open(self, rotation: int | None = None) -> DisplaySession:
        if self.active is not None:
            raise DeviceError(f"session {self._active.session_id} is still active")
        config = self.config
        if rotation is not None and rotation != config.rotation:
            if rotation not in ROTATIONS:
                raise DeviceError(f"Unsupported rotation: {rotation}")
            config = replace(config, rotation=rotation)

        session = DisplaySession(next(self._ids), self._transport_factory(), config, on_event=self._log_event)
        self._active = session
        session.open()
        return session

    def preempt(self, timeout: float | None = None) -> bool:
        """Preempt the active session; returns False when nothing was active."""
        session = self.active
        if session is None:
            return False
        if not session.preempt(timeout):
            raise DeviceError(f"session {session.session_id} did not close within {timeout}s")
        return True
